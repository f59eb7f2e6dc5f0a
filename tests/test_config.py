import pytest
from pydantic import ValidationError

from app.core.config import Settings, validate_settings
from app.core.exceptions import ConfigurationError


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


def test_development_defaults_are_valid():
    assert validate_settings(make_settings(ENVIRONMENT="development"))


def test_production_requires_credentials():
    config = make_settings(
        ENVIRONMENT="production",
        TELEGRAM_BOT_TOKEN=None,
        CAI_TOKEN=None,
        TELEGRAM_WEBHOOK_SECRET=None,
    )

    with pytest.raises(ConfigurationError) as exc_info:
        validate_settings(config)

    assert len(exc_info.value.details["errors"]) == 3


def test_request_timeout_covers_collaborator_timeout():
    config = make_settings(REQUEST_TIMEOUT_SECONDS=2.0, COLLABORATOR_TIMEOUT_SECONDS=5.0)

    with pytest.raises(ConfigurationError):
        validate_settings(config)


def test_radius_must_be_positive():
    with pytest.raises(ValidationError):
        make_settings(NEARBY_RADIUS_METERS=0)
