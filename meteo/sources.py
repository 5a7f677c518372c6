"""Human-readable provenance labels shown next to exported data."""
from __future__ import annotations

SOURCE_LABELS = {
    "xema-transparencia": "XEMA (Transparència Catalunya)",
    "meteocat": "Meteocat (Servei Meteorològic de Catalunya)",
    "open-meteo": "Datos de respaldo (Open-Meteo)",
    "mock": "Datos simulados",
}


def source_label(provider: str) -> str:
    return SOURCE_LABELS.get(provider, provider)


def build_data_source_label(provider: str, station_name: str) -> str:
    return f"Fuente: {source_label(provider)} - Estación: {station_name}"


__all__ = ["SOURCE_LABELS", "build_data_source_label", "source_label"]
