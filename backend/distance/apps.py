from django.apps import AppConfig


class DistanceConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backend.distance'
