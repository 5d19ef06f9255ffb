from pathlib import Path

import pytest

from src.configs.settings import Settings, load_settings
from src.ingestion.deduplication import DeduplicationStrategy
from src.ingestion.exceptions import ConfigurationError


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    """Run from an empty directory with no feed variables set."""
    monkeypatch.chdir(tmp_path)
    for name in ("FEED_URL", "GCAL_ICS_URL", "TIMEZONE", "GRACE_HOURS", "STORE_PATH", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def test_settings_default_values(clean_env, monkeypatch):
    """Test default values for settings."""
    monkeypatch.setenv("FEED_URL", "https://calendar.example.com/basic.ics")
    settings = Settings()
    assert settings.TIMEZONE == "Europe/Paris"
    assert settings.GRACE_HOURS == 24.0
    assert settings.STORE_PATH == Path("events.csv")
    assert settings.SITE_ORIGIN == ""
    assert settings.REQUEST_TIMEOUT == 30
    assert settings.DEDUPLICATION_STRATEGY is DeduplicationStrategy.FUZZY
    assert settings.FUZZY_MAX_DISTANCE == 2
    assert settings.JSON_LOGS is False
    assert str(settings.tz) == "Europe/Paris"


def test_legacy_feed_variable(clean_env, monkeypatch):
    """GCAL_ICS_URL is accepted when FEED_URL is not set."""
    monkeypatch.setenv("GCAL_ICS_URL", "  https://calendar.google.com/x/basic.ics ")
    assert load_settings().FEED_URL == "https://calendar.google.com/x/basic.ics"


def test_env_file(clean_env):
    """Values are read from .env in the working directory."""
    (clean_env / ".env").write_text(
        "FEED_URL=https://calendar.example.com/basic.ics\nGRACE_HOURS=6\nUNRELATED=1\n",
        encoding="utf-8",
    )
    settings = load_settings()
    assert settings.GRACE_HOURS == 6.0


def test_overrides_win_and_none_is_ignored(clean_env, monkeypatch):
    monkeypatch.setenv("FEED_URL", "https://calendar.example.com/basic.ics")
    monkeypatch.setenv("GRACE_HOURS", "12")
    settings = load_settings(GRACE_HOURS=None, STORE_PATH=Path("site/events.csv"), LOG_LEVEL="debug")
    assert settings.GRACE_HOURS == 12.0
    assert settings.STORE_PATH == Path("site/events.csv")
    assert settings.LOG_LEVEL == "DEBUG"


def test_missing_feed_url(clean_env):
    with pytest.raises(ConfigurationError, match="FEED_URL"):
        load_settings()


@pytest.mark.parametrize(
    "overrides",
    [
        {"FEED_URL": "   "},
        {"TIMEZONE": "Mars/Olympus_Mons"},
        {"GRACE_HOURS": -1},
        {"DEDUPLICATION_STRATEGY": "semantic"},
    ],
)
def test_invalid_values(clean_env, overrides):
    values = {"FEED_URL": "https://calendar.example.com/basic.ics", **overrides}
    with pytest.raises(ConfigurationError):
        load_settings(**values)
