from django.apps import AppConfig


class MeteoApiConfig(AppConfig):
    name = "meteo_api"
    verbose_name = "Barcelona weather stations API"
