"""Runtime configuration read from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .http.client import RequestConfig


DATA_MODES = ("live", "mock")
DEFAULT_PROVIDERS = ("xema-transparencia", "meteocat", "open-meteo")


def parse_boolean_env(value: Optional[str]) -> bool:
    if not value:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _optional(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(name)
    if value is None or value.strip() in {"", "undefined"}:
        return None
    return value.strip()


@dataclass(frozen=True)
class MeteoConfig:
    data_mode: str = "live"
    meteocat_api_key: Optional[str] = None
    socrata_app_token: Optional[str] = None
    providers: Tuple[str, ...] = DEFAULT_PROVIDERS
    request: RequestConfig = field(default_factory=RequestConfig)
    debug_data: bool = False

    @property
    def mock_mode(self) -> bool:
        return self.data_mode == "mock"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MeteoConfig":
        environ = os.environ if environ is None else environ
        data_mode = (_optional(environ, "METEO_DATA_MODE") or "live").lower()
        if data_mode not in DATA_MODES:
            raise ValueError(f"METEO_DATA_MODE must be one of {', '.join(DATA_MODES)}")
        providers_raw = _optional(environ, "METEO_PROVIDERS")
        providers = (
            tuple(name.strip() for name in providers_raw.split(",") if name.strip())
            if providers_raw
            else DEFAULT_PROVIDERS
        )
        request = RequestConfig(
            timeout=float(environ.get("METEO_HTTP_TIMEOUT", "10")),
            retries=int(environ.get("METEO_HTTP_RETRIES", "2")),
            retry_delay=float(environ.get("METEO_HTTP_RETRY_DELAY", "1")),
        )
        return cls(
            data_mode=data_mode,
            meteocat_api_key=_optional(environ, "METEOCAT_API_KEY"),
            socrata_app_token=_optional(environ, "SOCRATA_APP_TOKEN"),
            providers=providers,
            request=request,
            debug_data=parse_boolean_env(environ.get("METEO_DEBUG_DATA")),
        )


__all__ = ["DATA_MODES", "DEFAULT_PROVIDERS", "MeteoConfig", "parse_boolean_env"]
