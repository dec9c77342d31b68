"""Tests for environment-driven settings."""

import pytest

from openfema_client import config
from openfema_client.config import ClientSettings, clamp_page_size, get_settings, reset_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "OPENFEMA_BASE_URL",
        "OPENFEMA_TIMEOUT_SECONDS",
        "OPENFEMA_PAGE_SIZE",
        "OPENFEMA_USER_AGENT",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


def test_defaults():
    settings = ClientSettings.from_env()
    assert settings.base_url == config.DEFAULT_BASE_URL
    assert settings.timeout_seconds == config.DEFAULT_TIMEOUT_SECONDS
    assert settings.page_size == 1000


def test_values_from_environment(monkeypatch):
    monkeypatch.setenv("OPENFEMA_BASE_URL", "http://localhost:8080/api/open/")
    monkeypatch.setenv("OPENFEMA_TIMEOUT_SECONDS", "5.5")
    monkeypatch.setenv("OPENFEMA_PAGE_SIZE", "250")
    monkeypatch.setenv("OPENFEMA_USER_AGENT", "research-notebook")

    settings = ClientSettings.from_env()
    assert settings.base_url == "http://localhost:8080/api/open"
    assert settings.timeout_seconds == 5.5
    assert settings.page_size == 250
    assert settings.user_agent == "research-notebook"


@pytest.mark.parametrize(
    "name,value",
    [
        ("OPENFEMA_TIMEOUT_SECONDS", "soon"),
        ("OPENFEMA_TIMEOUT_SECONDS", "-1"),
        ("OPENFEMA_PAGE_SIZE", "lots"),
        ("OPENFEMA_PAGE_SIZE", "0"),
    ],
)
def test_invalid_values_fall_back(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    settings = ClientSettings.from_env()
    assert settings.timeout_seconds == config.DEFAULT_TIMEOUT_SECONDS
    assert settings.page_size == 1000


def test_oversized_page_size_clamped(monkeypatch):
    monkeypatch.setenv("OPENFEMA_PAGE_SIZE", "5000")
    assert ClientSettings.from_env().page_size == 1000


def test_clamp_page_size():
    assert clamp_page_size(1) == 1
    assert clamp_page_size(1000) == 1000
    assert clamp_page_size(1001) == 1000
    with pytest.raises(ValueError):
        clamp_page_size(0)


def test_settings_cached_until_reset(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("OPENFEMA_PAGE_SIZE", "10")
    assert get_settings() is first

    reset_settings()
    assert get_settings().page_size == 10
