# vehicles/signals.py
"""Invalidación de la caché de consultas cuando cambian los vehículos."""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .cache import VEHICLE_LIST, VEHICLE_STATS, query_cache
from .models import Investor, Vehicle


@receiver(post_save, sender=Vehicle)
@receiver(post_delete, sender=Vehicle)
def invalidate_vehicle_queries(sender, instance, **kwargs):
    query_cache.invalidate(VEHICLE_LIST)
    query_cache.invalidate(VEHICLE_STATS)


@receiver(post_save, sender=Investor)
@receiver(post_delete, sender=Investor)
def invalidate_investor_queries(sender, instance, **kwargs):
    # el listado incluye el nombre del inversor
    query_cache.invalidate(VEHICLE_LIST)
