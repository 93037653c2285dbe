"""
Tests for settings validation.
"""
import pytest

from brewhaven.core.config import Settings


def make(**overrides):
    values = {
        "DATABASE_URL": "postgresql+asyncpg://app:pw@db.internal:5432/brewhaven",
        "SECRET_KEY": "k3y-Zq8vN1xYp0",
        "ENVIRONMENT": "production",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:

    def test_production_defaults(self):
        settings = make()
        assert settings.DEBUG is False
        assert settings.ORDER_NUMBER_PREFIX == "ORD"
        assert settings.ORDER_NUMBER_MAX_ATTEMPTS == 5
        assert settings.STRICT_OPTION_VALIDATION is False

    def test_debug_forbidden_in_production(self):
        with pytest.raises(ValueError):
            make(DEBUG=True)

    def test_insecure_secret_forbidden_in_production(self):
        with pytest.raises(ValueError):
            make(SECRET_KEY="changeme")

    def test_localhost_database_forbidden_in_production(self):
        with pytest.raises(ValueError):
            make(DATABASE_URL="postgresql+asyncpg://app:pw@localhost:5432/brewhaven")

    def test_cors_origins_csv(self):
        settings = make(CORS_ORIGINS="https://a.example, https://b.example")
        assert settings.CORS_ORIGINS == ["https://a.example", "https://b.example"]

    def test_max_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            make(ORDER_NUMBER_MAX_ATTEMPTS=0)
