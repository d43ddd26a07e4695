from datetime import timedelta

import pytest

from wd_enrichment.config import EnrichmentSettings
from wd_enrichment.constants import DEFAULT_QUEUE_CAPACITY, DEFAULT_REQUEST_TIMEOUT

ENV_VARS = [
    "WD_API_URL",
    "WD_API_KEY",
    "WEBHOOK_SECRET",
    "TASK_QUEUE_CAPACITY",
    "WD_API_TIMEOUT_SECONDS",
    "WD_API_MAX_RETRIES",
    "WD_API_RETRY_WAIT_SECONDS",
    "LOG_LEVEL",
    "HOST",
    "PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def required_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("WD_API_URL", "https://api.example.com")
    monkeypatch.setenv("WD_API_KEY", "api-key")
    monkeypatch.setenv("WEBHOOK_SECRET", "c2VjcmV0")


def test_from_env_defaults(required_env: None):
    settings = EnrichmentSettings.from_env(load_dotenv=False)

    assert settings.api_url == "https://api.example.com"
    assert settings.api_key == "api-key"
    assert settings.webhook_secret == "c2VjcmV0"
    assert settings.queue_capacity == DEFAULT_QUEUE_CAPACITY
    assert settings.request_timeout == DEFAULT_REQUEST_TIMEOUT
    assert settings.max_retries == 1
    assert settings.log_level == "INFO"


def test_from_env_overrides(required_env: None, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TASK_QUEUE_CAPACITY", "100")
    monkeypatch.setenv("WD_API_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("WD_API_MAX_RETRIES", "3")
    monkeypatch.setenv("WD_API_RETRY_WAIT_SECONDS", "0.5")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("PORT", "9000")

    settings = EnrichmentSettings.from_env(load_dotenv=False)

    assert settings.queue_capacity == 100
    assert settings.request_timeout == timedelta(seconds=5)
    assert settings.max_retries == 3
    assert settings.retry_wait == timedelta(seconds=0.5)
    assert settings.log_level == "DEBUG"
    assert settings.port == 9000


@pytest.mark.parametrize("missing", ["WD_API_URL", "WD_API_KEY", "WEBHOOK_SECRET"])
def test_from_env_requires_variables(
    required_env: None, monkeypatch: pytest.MonkeyPatch, missing: str
):
    monkeypatch.delenv(missing)

    with pytest.raises(ValueError, match=missing):
        EnrichmentSettings.from_env(load_dotenv=False)


def test_from_env_rejects_negative_capacity(
    required_env: None, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setenv("TASK_QUEUE_CAPACITY", "-1")

    with pytest.raises(ValueError):
        EnrichmentSettings.from_env(load_dotenv=False)


def test_worker_stop_timeout_outlasts_in_flight_requests():
    settings = EnrichmentSettings(
        api_url="https://api.example.com",
        api_key="api-key",
        webhook_secret="c2VjcmV0",
        max_retries=3,
        retry_wait=timedelta(seconds=2),
    )

    # three fetch attempts, two waits, one submit
    assert settings.worker_stop_timeout > DEFAULT_REQUEST_TIMEOUT * 4 + timedelta(
        seconds=4
    )
    assert EnrichmentSettings(
        api_url="u", api_key="k", webhook_secret="s"
    ).worker_stop_timeout > DEFAULT_REQUEST_TIMEOUT * 2
