"""App configuration — environment variable loading with typed defaults.

Loads settings from .env file (via python-dotenv) and os.environ.
Real environment variables take precedence over .env file values.

The multiplier policy env var (MULTIPLIER_POLICY=stack) is resolved to a
MultiplierPolicy member at load time, so a typo fails at startup instead of
silently changing how XP boosts combine.

Usage:
    from codequest.config import get_settings
    settings = get_settings()
    print(settings.multiplier_policy)  # MultiplierPolicy.STACK
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from codequest.rewards.progression import MULTIPLIER_STACKING, MultiplierPolicy

# Only load .env from the project root, never from parent directories.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DOTENV_PATH = PROJECT_ROOT / ".env"


@dataclass(frozen=True)
class Settings:
    """Typed configuration for the CodeQuest backend.

    All fields have sensible defaults for local development.
    """

    # App
    app_env: str
    app_port: int
    log_level: str
    cors_origins: list[str]

    # Rewards
    multiplier_policy: MultiplierPolicy
    mystery_box_size: int
    submit_max_attempts: int


def _resolve_policy(env_var: str, value: str) -> MultiplierPolicy:
    """Resolves a policy name to a MultiplierPolicy member.

    Args:
        env_var: Name of the environment variable (for error messages).
        value: The raw value from the environment (e.g. "stack").

    Returns:
        The matching MultiplierPolicy.

    Raises:
        ValueError: If the value doesn't name a known policy.
    """
    try:
        return MultiplierPolicy(value.strip().lower())
    except ValueError:
        valid = ", ".join(policy.value for policy in MultiplierPolicy)
        raise ValueError(
            f"Invalid value for {env_var}: {value!r}. "
            f"Valid options: {valid}"
        ) from None


def _positive_int(env_var: str, value: str) -> int:
    """Parses a strictly positive integer setting."""
    parsed = int(value)
    if parsed < 1:
        raise ValueError(f"{env_var} must be at least 1, got {parsed}")
    return parsed


def _split_csv(value: str) -> list[str]:
    """Splits a comma-separated string into a list of stripped, non-empty values."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_settings() -> Settings:
    """Loads configuration from .env file and environment variables.

    Returns:
        A fully resolved Settings instance.
    """
    load_dotenv(_DOTENV_PATH)

    return Settings(
        # App
        app_env=os.environ.get("APP_ENV", "development"),
        app_port=int(os.environ.get("APP_PORT", "8000")),
        log_level=os.environ.get("LOG_LEVEL", "info"),
        cors_origins=_split_csv(
            os.environ.get("CORS_ORIGINS", "http://localhost:3000")
        ),
        # Rewards
        multiplier_policy=_resolve_policy(
            "MULTIPLIER_POLICY",
            os.environ.get("MULTIPLIER_POLICY", MULTIPLIER_STACKING.value),
        ),
        mystery_box_size=_positive_int(
            "MYSTERY_BOX_SIZE", os.environ.get("MYSTERY_BOX_SIZE", "5")
        ),
        submit_max_attempts=_positive_int(
            "SUBMIT_MAX_ATTEMPTS", os.environ.get("SUBMIT_MAX_ATTEMPTS", "3")
        ),
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Returns the singleton Settings instance. Loads .env on first call."""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings
