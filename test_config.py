"""Tests for configuration, key storage, masking and error messages."""

import sys

import pytest

from gcalagent.config.settings import AppConfig, ExtractionConfig
from gcalagent.core.service_errors import is_rate_limit_error, wrap_service_error
from gcalagent.error_messages import get_user_friendly_error
from gcalagent.exceptions.errors import (
    ErrorKind,
    ExtractionFailedError,
    InterpretationFailedError,
    InvalidResponseError,
    InvalidUrlError,
)
from gcalagent.storage import env_storage, key_manager
from gcalagent.utils.masking import mask_key, mask_url_secrets


class TestAppConfigFromEnv:

    def test_defaults(self):
        config = AppConfig.from_env({}, use_key_storage=False)

        assert config.api_key is None
        assert config.default_timezone == "local"
        assert config.api.model_name == "gemini-2.0-flash"
        assert config.extraction.strategy_order == ("oembed", "ai_fetch", "html", "headless")
        assert config.extraction.timeout_for("headless") == 30.0
        assert not config.extraction.serverless

    def test_free_tier_key_is_preferred(self):
        config = AppConfig.from_env(
            {"GEMINI_API_KEY": "paid-key", "GEMINI_API_KEY_FREE": "free-key"},
            use_key_storage=False,
        )
        assert config.api_key == "free-key"

    def test_overrides(self):
        config = AppConfig.from_env(
            {
                "GEMINI_API_KEY": "k",
                "GCALAGENT_MODEL": "gemini-1.5-pro",
                "GCALAGENT_TIMEZONE": "Europe/Berlin",
                "GCALAGENT_STRATEGIES": " HTML , headless ",
                "GCALAGENT_HTML_TIMEOUT": "4.5",
                "GCALAGENT_OEMBED_TOKEN": "app|secret",
                "GCALAGENT_HEADLESS_MAX_CONCURRENCY": "4",
                "GCALAGENT_CHROMIUM_PATH": "/opt/chromium",
            },
            use_key_storage=False,
        )

        assert config.api.model_name == "gemini-1.5-pro"
        assert config.default_timezone == "Europe/Berlin"
        assert config.extraction.strategy_order == ("html", "headless")
        assert config.extraction.timeout_for("html") == 4.5
        assert config.extraction.oembed_access_token == "app|secret"
        assert config.extraction.headless_max_concurrency == 4
        assert config.extraction.chromium_executable_path == "/opt/chromium"

    @pytest.mark.parametrize("value", ["abc", "0", "-3"])
    def test_invalid_timeouts_fall_back_to_defaults(self, value):
        config = AppConfig.from_env(
            {"GCALAGENT_OEMBED_TIMEOUT": value, "GCALAGENT_API_TIMEOUT": value},
            use_key_storage=False,
        )
        assert config.extraction.timeout_for("oembed") == 10.0
        assert config.api.timeout_seconds == 30.0

    def test_invalid_concurrency_falls_back(self):
        config = AppConfig.from_env(
            {"GCALAGENT_HEADLESS_MAX_CONCURRENCY": "many"}, use_key_storage=False
        )
        assert config.extraction.headless_max_concurrency == 2

    def test_serverless_detection(self):
        config = AppConfig.from_env(
            {"AWS_LAMBDA_FUNCTION_NAME": "gcal-agent"}, use_key_storage=False
        )
        assert config.extraction.serverless

    def test_key_storage_fallback(self, monkeypatch):
        monkeypatch.setattr(key_manager, "load_api_key", lambda environ=None: "stored-key")
        assert AppConfig.from_env({}).api_key == "stored-key"

    def test_with_api_key_returns_copy(self):
        config = AppConfig()
        updated = config.with_api_key("new")
        assert updated.api_key == "new"
        assert config.api_key is None

    def test_timeout_for_unknown_strategy(self):
        assert ExtractionConfig(timeouts={}).timeout_for("custom") == 10.0


class TestKeyStorage:

    @pytest.fixture(autouse=True)
    def isolated_storage(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GEMINI_API_KEY_FREE", raising=False)
        monkeypatch.setattr(key_manager, "load_from_keyring", lambda: None)
        monkeypatch.setattr(key_manager, "save_to_keyring", lambda api_key: False)
        self.tmp_path = tmp_path

    @pytest.mark.skipif(
        sys.platform in ("darwin", "win32"),
        reason="XDG_CONFIG_HOME is only honoured on Linux",
    )
    def test_save_then_load_round_trip(self):
        assert key_manager.save_api_key("  'AIzaTestKey1234'  ")

        env_file = self.tmp_path / "gcalagent" / ".env"
        assert env_file.exists()
        assert key_manager.load_api_key() == "AIzaTestKey1234"
        _, source = key_manager.get_api_key_source()
        assert source.startswith("User Config")

    def test_blank_key_is_rejected(self):
        assert not key_manager.save_api_key("  ''  ")

    def test_environment_wins(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        assert key_manager.get_api_key_source() == (
            "env-key", "Environment Variable (GEMINI_API_KEY)"
        )

    def test_injected_environment_replaces_process_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "process-key")
        assert key_manager.get_api_key_source({"GEMINI_API_KEY_FREE": "free-key"}) == (
            "free-key", "Environment Variable (GEMINI_API_KEY_FREE)"
        )

    @pytest.mark.skipif(
        sys.platform in ("darwin", "win32"),
        reason="XDG_CONFIG_HOME is only honoured on Linux",
    )
    def test_from_env_storage_fallback_ignores_process_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "process-key")
        assert key_manager.get_api_key_source({}) == (None, "No API Key Found")
        assert AppConfig.from_env({}).api_key is None

    def test_env_file_helpers(self):
        path = self.tmp_path / "custom.env"
        assert env_storage.load_from_env_file(path) is None
        env_storage.store_in_env_file("file-key", path)
        assert env_storage.load_from_env_file(path) == "file-key"


class TestMasking:

    def test_mask_key(self):
        assert mask_key("AIzaSyA1234567890abcd") == "AIza...abcd"
        assert mask_key("short") == "***"
        assert mask_key(None) == "<empty>"

    def test_mask_url_secrets(self):
        url = "https://graph.facebook.com/oembed?url=x&access_token=123456789|abcdefgh"
        masked = mask_url_secrets(url)
        assert "abcdefgh" not in masked
        assert "efgh" in masked
        assert "url=x" in masked
        assert mask_url_secrets("https://example.com/a") == "https://example.com/a"


class TestServiceErrors:

    def test_api_key_error(self):
        wrapped = wrap_service_error(ValueError("400 API_KEY_INVALID"), "AIza...abcd")
        assert isinstance(wrapped, InterpretationFailedError)
        assert "invalid" in str(wrapped).lower()

    def test_rate_limit_error(self):
        error = RuntimeError("429 Resource exhausted")
        assert is_rate_limit_error(error)
        assert "rate limiting" in str(wrap_service_error(error, "***"))

    def test_other_errors_keep_type_name(self):
        wrapped = wrap_service_error(ConnectionError("reset by peer"), "***")
        assert "ConnectionError" in str(wrapped)


class TestUserFriendlyErrors:

    def test_kind_messages(self):
        assert "Instagram post link" in get_user_friendly_error(InvalidUrlError("https://x.y"))
        assert "Couldn't read that post" in get_user_friendly_error(
            ExtractionFailedError("u", [("oembed", "429")])
        )

    def test_missing_fields(self):
        error = InvalidResponseError("bad", missing_fields={"title"})
        assert get_user_friendly_error(error) == "Event data is incomplete: missing title"

    def test_service_patterns(self):
        assert "Too many requests" in get_user_friendly_error(
            InterpretationFailedError("Rate limit exceeded")
        )
        assert "API key" in get_user_friendly_error(
            InterpretationFailedError("API key is invalid.")
        )

    def test_unknown_error(self):
        assert get_user_friendly_error(RuntimeError("boom")) == "An error occurred: boom"

    def test_every_kind_has_a_message(self):
        from gcalagent.error_messages import KIND_MESSAGES
        assert set(KIND_MESSAGES) == set(ErrorKind)
