"""
Feed parsers.

Each feed format has its own parser turning a raw document into FeedEntry objects.
"""

from .ics_parser import ICSParser

__all__ = [
    "ICSParser",
]
