"""
Signal handlers for the settings app.
Keeps the AppSettings cache in sync with Setting and ClinicDayOff rows.
"""

import logging

from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .config import CLINIC_DAYS_OFF_CACHE_KEY, app_settings
from .models import ClinicDayOff, Setting

logger = logging.getLogger(__name__)


@receiver([post_save, post_delete], sender=Setting)
def forget_cached_setting(sender, instance, **kwargs):
    app_settings.forget_setting(instance.name)
    logger.info(f"Setting '{instance.name}' changed, cached value dropped")


@receiver([post_save, post_delete], sender=ClinicDayOff)
def forget_clinic_days_off(sender, instance, **kwargs):
    cache.delete(CLINIC_DAYS_OFF_CACHE_KEY)
