"""Tests for codequest.config — Typed configuration from environment."""

import codequest.config as config_module
import pytest
from codequest.config import Settings, get_settings
from codequest.rewards.progression import MultiplierPolicy


@pytest.fixture(autouse=True)
def _reset_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Resets the cached singleton before each test."""
    monkeypatch.setattr(config_module, "_settings", None)


@pytest.fixture()
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Removes all CodeQuest-related env vars so defaults are tested cleanly."""
    env_vars = [
        "APP_ENV", "APP_PORT", "LOG_LEVEL", "CORS_ORIGINS",
        "MULTIPLIER_POLICY", "MYSTERY_BOX_SIZE", "SUBMIT_MAX_ATTEMPTS",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    """Settings defaults when no env vars are set."""

    @pytest.mark.usefixtures("_clean_env")
    def test_app_defaults(self) -> None:
        s = get_settings()
        assert s.app_env == "development"
        assert s.app_port == 8000
        assert s.log_level == "info"

    @pytest.mark.usefixtures("_clean_env")
    def test_cors_origins_default(self) -> None:
        s = get_settings()
        assert s.cors_origins == ["http://localhost:3000"]

    @pytest.mark.usefixtures("_clean_env")
    def test_reward_defaults(self) -> None:
        s = get_settings()
        assert s.multiplier_policy is MultiplierPolicy.STACK
        assert s.mystery_box_size == 5
        assert s.submit_max_attempts == 3


class TestMultiplierPolicy:
    """MULTIPLIER_POLICY resolves to a MultiplierPolicy member."""

    def test_max_policy(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MULTIPLIER_POLICY", "max")
        assert get_settings().multiplier_policy is MultiplierPolicy.MAX

    def test_case_and_whitespace_tolerated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MULTIPLIER_POLICY", "  STACK ")
        assert get_settings().multiplier_policy is MultiplierPolicy.STACK

    def test_invalid_policy_raises_value_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MULTIPLIER_POLICY", "additive")
        with pytest.raises(ValueError, match="Invalid value for MULTIPLIER_POLICY"):
            get_settings()

    def test_invalid_policy_error_lists_valid_options(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MULTIPLIER_POLICY", "nope")
        with pytest.raises(ValueError, match="stack, max"):
            get_settings()


class TestPositiveIntegers:
    """Box size and retry budget must be at least 1."""

    def test_custom_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MYSTERY_BOX_SIZE", "10")
        monkeypatch.setenv("SUBMIT_MAX_ATTEMPTS", "1")
        s = get_settings()
        assert s.mystery_box_size == 10
        assert s.submit_max_attempts == 1

    @pytest.mark.parametrize("var", ["MYSTERY_BOX_SIZE", "SUBMIT_MAX_ATTEMPTS"])
    def test_zero_rejected(self, monkeypatch: pytest.MonkeyPatch, var: str) -> None:
        monkeypatch.setenv(var, "0")
        with pytest.raises(ValueError, match=f"{var} must be at least 1"):
            get_settings()

    def test_non_integer_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MYSTERY_BOX_SIZE", "five")
        with pytest.raises(ValueError):
            get_settings()


class TestCommaSeparatedParsing:
    """Comma-separated env vars parse into lists correctly."""

    def test_cors_origins_split(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CORS_ORIGINS", "http://a.com, http://b.com ,http://c.com")
        s = get_settings()
        assert s.cors_origins == ["http://a.com", "http://b.com", "http://c.com"]

    def test_empty_items_dropped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CORS_ORIGINS", "http://a.com,,")
        assert get_settings().cors_origins == ["http://a.com"]


class TestSingleton:
    """get_settings caches its result."""

    def test_returns_same_instance(self) -> None:
        assert get_settings() is get_settings()

    def test_settings_frozen(self) -> None:
        s = get_settings()
        assert isinstance(s, Settings)
        with pytest.raises(AttributeError):
            s.app_port = 1  # type: ignore[misc]

    def test_env_overrides_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_PORT", "9000")
        assert get_settings().app_port == 9000
