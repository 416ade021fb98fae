"""
Runtime configuration read from environment variables.

The composition root calls python-dotenv's load_dotenv() first, so a local
.env file works the same way as real environment variables.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_USERNAME = "chris"
DEFAULT_PASSWORD = "buggles"
DEFAULT_SECRET = "dev-insecure-secret-change-me"
SESSION_MAX_AGE_SECONDS = 60 * 60 * 24 * 30
DEFAULT_JOURNAL_PATH = "data/journal.json"

_TRUTHY = {"1", "true", "yes", "on"}


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in _TRUTHY


def _as_float(value: Optional[str], default: float) -> float:
    if value is None or value == "":
        return default
    return float(value)


@dataclass(frozen=True)
class Settings:
    auth_username: str = DEFAULT_USERNAME
    auth_password: str = DEFAULT_PASSWORD
    auth_secret: str = DEFAULT_SECRET
    session_max_age_seconds: int = SESSION_MAX_AGE_SECONDS
    cookie_secure: bool = False
    spot_timeout_seconds: float = 8.0
    history_timeout_seconds: float = 12.0
    dominance_timeout_seconds: float = 8.0
    sentiment_timeout_seconds: float = 8.0
    sentiment_history_timeout_seconds: float = 12.0
    log_level: str = "INFO"
    headline_enabled: bool = False
    headline_model_id: Optional[str] = None
    aws_region: str = "us-east-1"
    langfuse_enabled: bool = False
    journal_path: str = DEFAULT_JOURNAL_PATH

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from *environ* (defaults to os.environ).

        Raises:
            ValueError: if a numeric variable cannot be parsed.
        """
        env = os.environ if environ is None else environ
        return cls(
            auth_username=env.get("AUTH_USERNAME", DEFAULT_USERNAME),
            auth_password=env.get("AUTH_PASSWORD", DEFAULT_PASSWORD),
            auth_secret=env.get("AUTH_SECRET", DEFAULT_SECRET),
            session_max_age_seconds=int(
                env.get("SESSION_MAX_AGE_SECONDS", SESSION_MAX_AGE_SECONDS)
            ),
            cookie_secure=_as_bool(env.get("COOKIE_SECURE"), False),
            spot_timeout_seconds=_as_float(env.get("SPOT_TIMEOUT_SECONDS"), 8.0),
            history_timeout_seconds=_as_float(env.get("HISTORY_TIMEOUT_SECONDS"), 12.0),
            dominance_timeout_seconds=_as_float(env.get("DOMINANCE_TIMEOUT_SECONDS"), 8.0),
            sentiment_timeout_seconds=_as_float(env.get("SENTIMENT_TIMEOUT_SECONDS"), 8.0),
            sentiment_history_timeout_seconds=_as_float(
                env.get("SENTIMENT_HISTORY_TIMEOUT_SECONDS"), 12.0
            ),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            headline_enabled=_as_bool(env.get("HEADLINE_ENABLED"), False),
            headline_model_id=env.get("HEADLINE_MODEL_ID") or None,
            aws_region=env.get("AWS_DEFAULT_REGION", "us-east-1"),
            langfuse_enabled=bool(
                env.get("LANGFUSE_PUBLIC_KEY") and env.get("LANGFUSE_SECRET_KEY")
            ),
            journal_path=env.get("JOURNAL_PATH") or DEFAULT_JOURNAL_PATH,
        )
