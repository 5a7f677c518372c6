"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from meteo_api.views import LatestView, ObservationsView, ProvidersView, StationsView

urlpatterns = [
    path("api/stations", StationsView.as_view(), name="stations"),
    path("api/latest", LatestView.as_view(), name="latest"),
    path("api/observations", ObservationsView.as_view(), name="observations"),
    path("api/providers", ProvidersView.as_view(), name="providers"),
]
