from __future__ import annotations

import logging
from typing import List, Optional

import requests

from ..config import MeteoConfig
from ..http.client import FetchClient
from .base import DataProvider
from .meteocat import MeteocatProvider
from .mock import MockProvider
from .openmeteo import OpenMeteoProvider
from .xema import XemaProvider


logger = logging.getLogger(__name__)


def build_providers(config: MeteoConfig, session: Optional[requests.Session] = None) -> List[DataProvider]:
    """Instantiate the configured providers in priority order."""

    fetch_client = FetchClient(session=session, config=config.request)
    if config.mock_mode:
        return [MockProvider(fetch_client=fetch_client)]

    factories = {
        XemaProvider.name: lambda: XemaProvider(
            fetch_client, app_token=config.socrata_app_token, debug_data=config.debug_data
        ),
        MeteocatProvider.name: lambda: MeteocatProvider(fetch_client, api_key=config.meteocat_api_key),
        OpenMeteoProvider.name: lambda: OpenMeteoProvider(fetch_client),
        MockProvider.name: lambda: MockProvider(fetch_client=fetch_client),
    }
    providers: List[DataProvider] = []
    for name in config.providers:
        factory = factories.get(name)
        if factory is None:
            logger.warning("Ignoring unknown provider %r", name)
            continue
        providers.append(factory())
    return providers


__all__ = [
    "DataProvider",
    "MeteocatProvider",
    "MockProvider",
    "OpenMeteoProvider",
    "XemaProvider",
    "build_providers",
]
