import pytest
from pydantic import ValidationError

from app.config import Settings, parse_duration


@pytest.mark.parametrize(
    ("value", "expected"),
    [(3600, 3600), ("90", 90), ("90s", 90), ("30m", 1800), ("24h", 86_400), ("7d", 604_800)],
)
def test_parse_duration(value, expected) -> None:
    assert parse_duration(value) == expected


def test_parse_duration_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        parse_duration("soon")


def test_jwt_secret_is_required(monkeypatch) -> None:
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_twilio_credentials_are_required(monkeypatch) -> None:
    monkeypatch.delenv("TWILIO_AUTH_TOKEN", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_verify_sid_alias(monkeypatch) -> None:
    monkeypatch.delenv("TWILIO_VERIFY_SERVICE_SID", raising=False)
    monkeypatch.setenv("TWILIO_VERIFY_SID", "VAalias")
    assert Settings(_env_file=None).twilio_verify_service_sid == "VAalias"


def test_defaults(monkeypatch) -> None:
    monkeypatch.setenv("JWT_EXPIRES_IN", "24h")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
    settings = Settings(_env_file=None)
    assert settings.jwt_expire_seconds == 86_400
    assert settings.default_country_code == "91"
    assert settings.require_verified_phone is True
    assert settings.cors_origins_list == ["http://a.test", "http://b.test"]


@pytest.mark.parametrize("value", ["1 day", "soon", "-5m"])
def test_invalid_jwt_expires_in_fails_at_load(monkeypatch, value) -> None:
    monkeypatch.setenv("JWT_EXPIRES_IN", value)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
