"""
Unit tests for configuration, errors and logging setup.
"""

import pytest
import structlog
from pydantic import ValidationError

from cacheman import Cacheman, InvalidKeyError, MiddlewareError
from shared.config import CachemanSettings, get_settings
from shared.errors import ErrorResponse
from shared.logging import configure_logging, get_logger


class TestCachemanSettings:
    """Test cases for CachemanSettings."""

    def test_defaults(self, monkeypatch):
        """Defaults match the documented options."""
        for name in ("PREFIX", "DELIMITER", "TTL", "ENGINE", "COUNT"):
            monkeypatch.delenv(f"CACHEMAN_{name}", raising=False)
        settings = get_settings()
        assert settings.prefix == "cacheman"
        assert settings.delimiter == ":"
        assert settings.ttl == 60
        assert settings.engine == "memory"
        assert settings.count == 1000
        assert settings.disabled is False

    def test_environment(self, monkeypatch):
        """CACHEMAN_* variables configure new instances."""
        monkeypatch.setenv("CACHEMAN_PREFIX", "envprefix")
        monkeypatch.setenv("CACHEMAN_TTL", "1m")
        cache = Cacheman("ns")
        assert cache.prefix == "envprefix:ns:"
        assert cache.ttl == 60

    def test_overrides_beat_environment(self, monkeypatch):
        """Constructor options win over the environment."""
        monkeypatch.setenv("CACHEMAN_PREFIX", "envprefix")
        assert Cacheman("ns", prefix="explicit").prefix == "explicit:ns:"

    def test_settings_object(self):
        """A settings object can be passed and further overridden."""
        settings = CachemanSettings(prefix="base", delimiter="/")
        cache = Cacheman("ns", settings=settings, delimiter="|")
        assert cache.prefix == "base|ns|"

    def test_invalid_count(self):
        """Capacity must be positive."""
        with pytest.raises(ValidationError):
            get_settings(count=0)


class TestErrors:
    """Test cases for the error hierarchy."""

    def test_to_response(self):
        """Errors convert to the standard response model."""
        response = InvalidKeyError(details={"key_type": "int"}).to_response()
        assert isinstance(response, ErrorResponse)
        assert response.code == "INVALID_KEY"
        assert response.details == {"key_type": "int"}

    def test_middleware_error_keeps_cause(self):
        """MiddlewareError carries the stage's signal."""
        error = MiddlewareError({"reason": "veto"})
        assert error.cause == {"reason": "veto"}
        assert error.code == "MIDDLEWARE_ERROR"


class TestLogging:
    """Test cases for logging configuration."""

    def test_configure_logging(self):
        """configure_logging installs structlog with stdlib integration."""
        configure_logging("cacheman", "debug")
        try:
            assert structlog.is_configured()
            logger = get_logger("cacheman.tests")
            logger.info("logging configured", check=True)
        finally:
            structlog.reset_defaults()
            structlog.contextvars.clear_contextvars()
