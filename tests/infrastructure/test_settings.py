import logging

import httpx
import pytest

from btc_tracker.application.services.provider_chain import ChainTimeouts
from btc_tracker.infrastructure.config.settings import SESSION_MAX_AGE_SECONDS, Settings
from btc_tracker.infrastructure.entrypoints.fastapi_app import build_provider_chain
from btc_tracker.infrastructure.observability.logging_config import configure_logging


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})
    assert settings.auth_username == "chris"
    assert settings.session_max_age_seconds == SESSION_MAX_AGE_SECONDS
    assert settings.spot_timeout_seconds == 8.0
    assert settings.history_timeout_seconds == 12.0
    assert settings.sentiment_timeout_seconds == 8.0
    assert settings.sentiment_history_timeout_seconds == 12.0
    assert settings.headline_enabled is False
    assert settings.headline_model_id is None


def test_environment_overrides():
    settings = Settings.from_env({
        "AUTH_USERNAME": "ana",
        "COOKIE_SECURE": "true",
        "SPOT_TIMEOUT_SECONDS": "2.5",
        "LOG_LEVEL": "debug",
        "HEADLINE_ENABLED": "1",
        "HEADLINE_MODEL_ID": "some-model",
    })
    assert settings.auth_username == "ana"
    assert settings.cookie_secure is True
    assert settings.spot_timeout_seconds == 2.5
    assert settings.log_level == "DEBUG"
    assert settings.headline_enabled is True
    assert settings.headline_model_id == "some-model"


def test_bad_number_raises():
    with pytest.raises(ValueError):
        Settings.from_env({"HISTORY_TIMEOUT_SECONDS": "soon"})


def test_configure_logging_quiets_http_clients():
    configure_logging("INFO")
    assert logging.getLogger("httpx").level == logging.WARNING


@pytest.mark.asyncio
async def test_provider_chain_takes_every_timeout_from_settings():
    settings = Settings.from_env({
        "SENTIMENT_TIMEOUT_SECONDS": "3",
        "SENTIMENT_HISTORY_TIMEOUT_SECONDS": "9",
        "DOMINANCE_TIMEOUT_SECONDS": "4",
    })
    async with httpx.AsyncClient() as client:
        chain = build_provider_chain(client, settings)

    assert chain.timeouts == ChainTimeouts(
        spot=8.0, history=12.0, dominance=4.0, sentiment=3.0, sentiment_history=9.0
    )


def test_langfuse_needs_both_keys():
    assert Settings.from_env({}).langfuse_enabled is False
    assert Settings.from_env({"LANGFUSE_PUBLIC_KEY": "pk"}).langfuse_enabled is False
    both = Settings.from_env({"LANGFUSE_PUBLIC_KEY": "pk", "LANGFUSE_SECRET_KEY": "sk"})
    assert both.langfuse_enabled is True
