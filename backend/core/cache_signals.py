"""
Cache invalidation signals
Automatically invalidate dashboard cache when orders or charges change
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from backend.orders.models import Order
from backend.charges.models import ChargeLine
from .cache_utils import invalidate_dashboard_cache

logger = logging.getLogger(__name__)


@receiver([post_save, post_delete], sender=Order)
def invalidate_dashboard_on_order_change(sender, instance, **kwargs):
    logger.debug(f"Order {instance.pk} changed, invalidating dashboard cache")
    invalidate_dashboard_cache()


@receiver([post_save, post_delete], sender=ChargeLine)
def invalidate_dashboard_on_charge_change(sender, instance, **kwargs):
    logger.debug(f"Charge line {instance.pk} changed, invalidating dashboard cache")
    invalidate_dashboard_cache()
