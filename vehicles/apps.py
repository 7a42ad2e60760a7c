# vehicles/apps.py
from django.apps import AppConfig


class VehiclesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "vehicles"
    verbose_name = "Vehículos"

    def ready(self):
        # Invalidación de la caché de consultas en cada escritura
        from . import signals  # noqa: F401
