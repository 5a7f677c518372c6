from __future__ import annotations

import math
from dataclasses import replace
from typing import Iterable, List, Optional

from .entities import Station


EARTH_RADIUS_KM = 6371.0

# Barcelona-area XEMA stations, used when the metadata dataset is empty.
XEMA_BCN_STATIONS = (
    ("D5", "Barcelona - el Raval", 41.3797, 2.1682, 33.0, "Barcelona"),
    ("X2", "Observatori Fabra", 41.4184, 2.1239, 411.0, "Barcelona"),
    ("X4", "Barcelona - Zona Universitària", 41.3870, 2.1130, 81.0, "Barcelona"),
    ("X8", "Barcelona - Barceloneta", 41.3850, 2.2010, 2.0, "Barcelona"),
    ("XL", "El Prat de Llobregat", 41.2974, 2.0833, 6.0, "El Prat de Llobregat"),
)

# Extra points served by the coordinate-based fallback provider.
GRID_BCN_STATIONS = (
    ("bcn-eixample", "Barcelona - Eixample", 41.3930, 2.1620, 45.0, "Barcelona"),
    ("bcn-gracia", "Barcelona - Gràcia", 41.4036, 2.1532, 120.0, "Barcelona"),
    ("badalona", "Badalona", 41.4500, 2.2474, 20.0, "Badalona"),
    ("hospitalet", "L'Hospitalet de Llobregat", 41.3596, 2.1000, 25.0, "L'Hospitalet de Llobregat"),
    ("sant-cugat", "Sant Cugat del Vallès", 41.4722, 2.0864, 180.0, "Sant Cugat del Vallès"),
    ("montjuic", "Barcelona - Montjuïc", 41.3639, 2.1586, 173.0, "Barcelona"),
    ("tibidabo", "Barcelona - Tibidabo", 41.4225, 2.1189, 512.0, "Barcelona"),
)


def catalogue(entries: Iterable[tuple], provider: str) -> List[Station]:
    return [
        Station(
            id=station_id,
            name=name,
            latitude=lat,
            longitude=lon,
            elevation=elevation,
            municipality=municipality,
            provider=provider,
        )
        for station_id, name, lat, lon, elevation, municipality in entries
    ]


def find_station(stations: Iterable[Station], station_id: str) -> Optional[Station]:
    for station in stations:
        if station.id == station_id:
            return station
    return None


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def sort_by_distance(stations: Iterable[Station], latitude: float, longitude: float) -> List[Station]:
    located = [
        replace(
            station,
            distance_km=round(haversine_km(latitude, longitude, station.latitude, station.longitude), 2),
        )
        for station in stations
    ]
    return sorted(located, key=lambda station: (station.distance_km, station.name))


__all__ = [
    "GRID_BCN_STATIONS",
    "XEMA_BCN_STATIONS",
    "catalogue",
    "find_station",
    "haversine_km",
    "sort_by_distance",
]
