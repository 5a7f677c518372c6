from __future__ import annotations

import os

import django
import pytest
import requests_mock as requests_mock_lib


os.environ.setdefault("DJANGO_SECRET_KEY", "test-secret")
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "meteo_api.settings")
# Tests never reach real providers unless a test mocks them explicitly.
os.environ.setdefault("METEO_DATA_MODE", "mock")

django.setup()

from meteo.http.client import FetchClient, RequestConfig  # noqa: E402


@pytest.fixture()
def requests_mock():
    with requests_mock_lib.Mocker() as mocker:
        yield mocker


@pytest.fixture
def fetch_client():
    """Fetch client that never sleeps between retries."""

    return FetchClient(config=RequestConfig(timeout=1.0, retries=2, retry_delay=0.5), sleep=lambda _: None)


@pytest.fixture(autouse=True)
def clear_caches():
    """Fresh station cache and orchestrator for every test."""

    from django.conf import settings
    from django.core.cache import caches

    from meteo_api.views import get_orchestrator

    caches[settings.WEATHER_CACHE_ALIAS].clear()
    get_orchestrator.cache_clear()
    yield
