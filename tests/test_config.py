"""Tests for configuration and the credential session."""

import json

import pytest
from pydantic import ValidationError

from timegrid.config import (
    DEFAULT_BASE_URL,
    ENV_API_URL,
    ENV_SLOT_SOURCE,
    ENV_TIMEOUT,
    CoreConfig,
    SlotSource,
    load_config,
)
from timegrid.data.models import DEFAULT_DAYS, Day
from timegrid.errors import AuthMissingError
from timegrid.session import Session


class TestCoreConfig:
    """Tests for CoreConfig defaults and validation."""

    def test_defaults(self):
        config = CoreConfig()
        assert config.base_url == DEFAULT_BASE_URL
        assert config.timeout_seconds == 10
        assert config.days == list(DEFAULT_DAYS)
        assert config.slot_source is SlotSource.REGISTRY
        assert config.preview_limit == 2

    def test_trailing_slash_stripped(self):
        assert CoreConfig(base_url="http://x/api/").base_url == "http://x/api"

    def test_days_parsed(self):
        config = CoreConfig(days=["Monday", "SUNDAY"])
        assert config.days == [Day.MONDAY, Day.SUNDAY]

    def test_repeated_days_rejected(self):
        with pytest.raises(ValidationError):
            CoreConfig(days=["monday", "monday"])

    def test_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            CoreConfig(timeout_seconds=0)

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            CoreConfig(retries=3)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_empty_environment(self):
        assert load_config(env={}) == CoreConfig()

    def test_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"days": ["monday", "tuesday"], "preview_limit": 4}))
        config = load_config(path, env={})
        assert config.days == [Day.MONDAY, Day.TUESDAY]
        assert config.preview_limit == 4

    def test_environment_overrides_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"base_url": "http://file/api"}))
        config = load_config(path, env={
            ENV_API_URL: "http://env/api",
            ENV_TIMEOUT: "2.5",
            ENV_SLOT_SOURCE: "ENTRIES",
        })
        assert config.base_url == "http://env/api"
        assert config.timeout_seconds == 2.5
        assert config.slot_source is SlotSource.ENTRIES

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.json", env={})

    def test_invalid_value(self):
        with pytest.raises(ValidationError):
            load_config(env={ENV_TIMEOUT: "soon"})


class TestSession:
    """Tests for the credential session."""

    def test_bearer(self):
        assert Session("abc").bearer() == "Bearer abc"

    def test_missing_token(self):
        session = Session()
        assert not session.is_authenticated
        with pytest.raises(AuthMissingError, match="log in"):
            session.bearer()

    def test_blank_token_is_missing(self):
        assert not Session("   ").is_authenticated

    def test_invalidate(self):
        session = Session("abc", user_id="42")
        session.invalidate()
        assert not session.is_authenticated
        assert "anonymous" in repr(session)
