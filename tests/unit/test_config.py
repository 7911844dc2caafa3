"""
Unit tests for settings defaults and environment overrides
"""

from core.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.ISS_EVERY_SECONDS == 120
    assert settings.FETCH_EVERY_SECONDS == 600
    assert settings.APOD_EVERY_SECONDS == 43200
    assert settings.NEO_EVERY_SECONDS == 7200
    assert settings.DONKI_EVERY_SECONDS == 3600
    assert settings.SPACEX_EVERY_SECONDS == 3600
    assert settings.HTTP_TIMEOUT_SECS == 30.0
    assert settings.HTTP_CONNECT_TIMEOUT_SECS == 10.0
    assert settings.HTTP_MAX_RETRIES == 3
    assert settings.HTTP_BACKOFF_CAP_SECS == 32.0
    assert settings.CACHE_TTL_TELEMETRY_LATEST == 30
    assert settings.CACHE_TTL_SUMMARY == 60
    assert settings.CACHE_DEFAULT_TTL == 120


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ISS_EVERY_SECONDS", "15")
    monkeypatch.setenv("CACHE_BACKEND", "memory")

    settings = Settings(_env_file=None)

    assert settings.ISS_EVERY_SECONDS == 15
    assert settings.CACHE_BACKEND == "memory"


def test_jwst_needs_key_and_program(monkeypatch):
    monkeypatch.delenv("JWST_API_KEY", raising=False)
    monkeypatch.delenv("JWST_PROGRAM_ID", raising=False)

    assert Settings(_env_file=None).jwst_enabled is False
    assert Settings(_env_file=None, JWST_API_KEY="k").jwst_enabled is False
    assert Settings(_env_file=None, JWST_API_KEY="k", JWST_PROGRAM_ID="2731").jwst_enabled is True
