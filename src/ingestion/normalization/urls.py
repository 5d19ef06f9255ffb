"""
URL canonicalization for event, ticket and cover links.

Keep these pure (input -> output). Malformed input is returned stripped but
otherwise untouched rather than raising.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

TRACKING_PARAMS: tuple[str, ...] = (
    "fbclid",
    "gclid",
    "mc_cid",
    "mc_eid",
    "igshid",
    "ref",
    "_ga",
)
TRACKING_PREFIXES: tuple[str, ...] = ("utm_",)

IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".avif", ".svg")

_PLACEHOLDER_NAME = re.compile(
    r"(?:^|[/_.-])(?:logo|placeholder|default|favicon|no-image|noimage)[^/]*$",
    re.IGNORECASE,
)
_DRIVE_FILE = re.compile(r"^/file/d/([^/]+)")
_GITHUB_BLOB = re.compile(r"^/([^/]+)/([^/]+)/blob/(.+)$")


def _is_tracking_param(key: str, extra: Sequence[str] = ()) -> bool:
    lowered = key.lower()
    if lowered in TRACKING_PARAMS or lowered in extra:
        return True
    return any(lowered.startswith(prefix) for prefix in TRACKING_PREFIXES)


def normalize_url(url: Any, *, extra_tracking_params: Sequence[str] = ()) -> str:
    """
    Canonical form of an absolute http(s) URL.

    Lower-cases scheme and host, drops default ports, fragments and tracking
    query parameters, and sorts the remaining query. Anything without a scheme
    and host is returned stripped.
    """
    if not isinstance(url, str):
        return ""
    url = url.strip()
    if not url:
        return url

    try:
        parts = urlparse(url)
    except ValueError:
        return url

    if not parts.scheme or not parts.netloc:
        return url

    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()

    if netloc.endswith(":80") and scheme == "http":
        netloc = netloc[:-3]
    if netloc.endswith(":443") and scheme == "https":
        netloc = netloc[:-4]

    drop = {p.lower() for p in extra_tracking_params}
    query_pairs = [
        (k, v)
        for (k, v) in parse_qsl(parts.query, keep_blank_values=True)
        if not _is_tracking_param(k, tuple(drop))
    ]
    query_pairs.sort(key=lambda kv: (kv[0], kv[1]))
    query = urlencode(query_pairs, doseq=True)

    return urlunparse((scheme, netloc, parts.path, parts.params, query, ""))


def url_host(url: Any) -> str:
    """Lower-cased host of a URL without ``www.``; empty when there is none."""
    if not isinstance(url, str):
        return ""
    try:
        host = (urlparse(url.strip()).hostname or "").lower()
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def has_image_extension(url: Any) -> bool:
    """True when the URL path ends with a known image extension."""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        path = urlparse(url.strip()).path
    except ValueError:
        return False
    return path.lower().endswith(IMAGE_EXTENSIONS)


def looks_like_link(value: Any) -> bool:
    """
    True when a directive value can be a link: a single token with a letter
    and a path or host separator (``https://...``, ``www.x.org/e``,
    ``/img/poster.jpg``, ``poster.png``, ``data:...``).

    Prose such as ``soirée kizomba`` or a phone number is rejected.
    """
    if not isinstance(value, str):
        return False
    value = value.strip()
    if not value or any(c.isspace() for c in value):
        return False
    if not any(c.isalpha() for c in value):
        return False
    return value.lower().startswith("data:") or "/" in value or "." in value


def _rewrite_hosted_cover(url: str) -> str:
    """Turn share/viewer links of known hosts into direct-content links."""
    try:
        parts = urlparse(url)
    except ValueError:
        return url
    host = (parts.hostname or "").lower()

    if host in ("github.com", "www.github.com"):
        match = _GITHUB_BLOB.match(parts.path)
        if match:
            owner, repo, rest = match.groups()
            return f"https://raw.githubusercontent.com/{owner}/{repo}/{rest}"

    if host == "drive.google.com":
        match = _DRIVE_FILE.match(parts.path)
        file_id = match.group(1) if match else dict(parse_qsl(parts.query)).get("id")
        if file_id and (match or parts.path == "/open"):
            return f"https://drive.google.com/uc?export=view&id={file_id}"

    if host in ("dropbox.com", "www.dropbox.com"):
        query = {
            k: v
            for k, v in parse_qsl(parts.query, keep_blank_values=True)
            if k not in ("dl", "raw")
        }
        query["raw"] = "1"
        return urlunparse(
            (parts.scheme or "https", parts.netloc, parts.path, parts.params, urlencode(query), "")
        )

    return url


def normalize_cover_url(url: Any, site_origin: str = "") -> str:
    """
    Direct, absolute link for a cover image.

    - ``data:`` URLs and protocol-relative URLs pass through unchanged
    - GitHub ``blob``, Google Drive viewer and Dropbox share links are
      rewritten to their direct-content form
    - site-relative paths (``images/x.jpg``, ``/images/x.jpg``) are resolved
      against ``site_origin`` when one is given, and kept as-is otherwise
    """
    if not isinstance(url, str):
        return ""
    url = url.strip()
    if not url:
        return ""

    lowered = url.lower()
    if lowered.startswith("data:") or url.startswith("//"):
        return url

    if lowered.startswith(("http://", "https://")):
        return _rewrite_hosted_cover(url)

    if ":" in url.split("/", 1)[0]:
        # Some other scheme (mailto:, blob:, ...)
        return url

    if not site_origin:
        return url
    relative = url[2:] if url.startswith("./") else url
    return urljoin(site_origin.rstrip("/") + "/", relative)


def is_placeholder_cover(url: Any) -> bool:
    """True when the cover's file name is a generic logo/placeholder image."""
    if not isinstance(url, str) or not url.strip():
        return False
    value = url.strip()
    if value.lower().startswith("data:"):
        return False
    try:
        path = urlparse(value).path or value
    except ValueError:
        path = value
    return bool(_PLACEHOLDER_NAME.search(path.rstrip("/")))
