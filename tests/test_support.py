from __future__ import annotations

from datetime import datetime

import pytest

from meteo.config import DEFAULT_PROVIDERS, MeteoConfig, parse_boolean_env
from meteo.dates import build_quick_range_excluding_today, parse_timestamp, to_local_minute_key
from meteo.diagnostics import describe_series
from meteo.entities import Observation, ProviderResult
from meteo.errors import ApiError, ErrorCode
from meteo.sources import build_data_source_label
from meteo.stations import haversine_km


def test_utc_timestamps_become_local_wall_clock():
    assert to_local_minute_key("2026-07-01T10:00Z") == "2026-07-01T12:00"
    assert to_local_minute_key("2026-01-15T10:00:00+00:00") == "2026-01-15T11:00"
    assert to_local_minute_key("2026-01-15T10:00:00") == "2026-01-15T10:00"
    assert to_local_minute_key("not a date") == "not a date"
    assert parse_timestamp("") is None


def test_quick_range_excludes_today():
    date_range = build_quick_range_excluding_today(7, now=datetime(2026, 2, 10, 15, 30))

    assert date_range.start == datetime(2026, 2, 3)
    assert date_range.end.date() == datetime(2026, 2, 9).date()
    assert date_range.end.hour == 23


@pytest.mark.parametrize("raw,expected", [("1", True), ("TRUE", True), ("on", True), ("0", False), ("", False), (None, False)])
def test_parse_boolean_env(raw, expected):
    assert parse_boolean_env(raw) is expected


def test_config_from_env():
    config = MeteoConfig.from_env(
        {
            "METEO_DATA_MODE": "LIVE",
            "METEOCAT_API_KEY": "undefined",
            "SOCRATA_APP_TOKEN": " token ",
            "METEO_PROVIDERS": "open-meteo, meteocat",
            "METEO_HTTP_RETRIES": "4",
            "METEO_DEBUG_DATA": "yes",
        }
    )

    assert config.data_mode == "live"
    assert config.meteocat_api_key is None
    assert config.socrata_app_token == "token"
    assert config.providers == ("open-meteo", "meteocat")
    assert config.request.retries == 4
    assert config.debug_data is True


def test_config_defaults_and_validation():
    assert MeteoConfig.from_env({}).providers == DEFAULT_PROVIDERS
    with pytest.raises(ValueError):
        MeteoConfig.from_env({"METEO_DATA_MODE": "replay"})


def test_provider_result_needs_exactly_one_outcome():
    with pytest.raises(ValueError):
        ProviderResult(data=None, error=None, provider="mock")
    with pytest.raises(ValueError):
        ProviderResult(data=[], error=ApiError(ErrorCode.UNKNOWN, "x"), provider="mock")

    assert ProviderResult.success([], "mock").ok


def test_data_source_label():
    assert build_data_source_label("open-meteo", "Badalona") == "Fuente: Datos de respaldo (Open-Meteo) - Estación: Badalona"


def test_haversine_barcelona_to_el_prat():
    assert haversine_km(41.3797, 2.1682, 41.2974, 2.0833) == pytest.approx(11.5, abs=0.5)


def test_describe_series():
    description = describe_series(
        [
            Observation(timestamp="2026-02-03T10:00", temperature=10.0),
            Observation(timestamp="2026-02-03T10:30", temperature=12.0),
            Observation(timestamp="2026-02-03T10:30", temperature=12.0),
            Observation(timestamp="2026-02-03T13:00", temperature=9.0),
        ]
    )

    assert description.points == 4
    assert description.duplicates == 1
    assert description.first_timestamp == "2026-02-03T10:00"
    assert description.ranges["temperature"] == (9.0, 12.0)
    assert description.irregular_gaps >= 1
