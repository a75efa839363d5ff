"""
Centralized configuration management using the Singleton pattern.
Business constants come from settings.CHECKOUT; values staff can change at
runtime (Setting rows, clinic days off) are read from the database and
cached with Django's cache.
"""

import logging
from datetime import time
from typing import Any, List, Optional

from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)

CLINIC_DAYS_OFF_CACHE_KEY = "settings:clinic_days_off"
SETTING_CACHE_KEY = "settings:setting:{name}"
CACHE_TIMEOUT = 3600


class AppSettings:
    """
    A LAZY singleton class that provides centralized access to checkout settings.
    It defers loading until the first setting is accessed.
    """

    _instance: Optional["AppSettings"] = None
    _initialized: bool = False

    def __new__(cls) -> "AppSettings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def _setup(self):
        if not self._initialized:
            self.load_settings()
            self._initialized = True

    def __getattr__(self, name: str) -> Any:
        """
        Lazily loads settings on first access, then retrieves the attribute.
        """
        if not self._initialized:
            self._setup()

        try:
            return self.__dict__[name]
        except KeyError:
            raise AttributeError(f"'AppSettings' object has no attribute '{name}'")

    def load_settings(self) -> None:
        """
        Populate instance attributes from settings.CHECKOUT.
        """
        config = getattr(settings, "CHECKOUT", None)
        if config is None:
            raise ImproperlyConfigured("settings.CHECKOUT is not defined")

        try:
            hours, minutes = (int(part) for part in config["CUTOFF_TIME"].split(":"))
            self.timezone: str = config["TIMEZONE"]
            self.shipment_timezone: str = config["SHIPMENT_TIMEZONE"]
            self.cutoff_time: time = time(hours, minutes)
            self.delivery_date_max_scan_days: int = config["DELIVERY_DATE_MAX_SCAN_DAYS"]
            self.order_po_number_start: int = config["ORDER_PO_NUMBER_START"]
            self.order_po_number_step: int = config["ORDER_PO_NUMBER_STEP"]
            self.item_po_number_offset: int = config["ITEM_PO_NUMBER_OFFSET"]
            self.clinic_code: str = config["CLINIC_CODE"]
            self.default_clinic_threshold: int = config["CLINIC_THRESHOLD"]
            self.support_email: str = config["SUPPORT_EMAIL"]
            self.client_service_inbox: str = config["CLIENT_SERVICE_INBOX"]
            self.companion_discount_code: str = config["COMPANION_DISCOUNT_CODE"]
            self.delegate_silent_discount_code: str = config["DELEGATE_SILENT_DISCOUNT_CODE"]
            self.shipping_hold_discount_code: str = config["SHIPPING_HOLD_DISCOUNT_CODE"]
            self.telehealth_product_uuid: str = config["TELEHEALTH_PRODUCT_UUID"]
        except (KeyError, ValueError) as e:
            raise ImproperlyConfigured(f"Failed to load checkout settings: {e}")

    def reload(self) -> None:
        """
        Drop loaded constants and cached database values.
        """
        for key in list(self.__dict__.keys()):
            del self.__dict__[key]
        self._initialized = False
        cache.delete(CLINIC_DAYS_OFF_CACHE_KEY)
        logger.info("AppSettings cache reloaded")

    def get_setting(self, name: str, default: Any = None) -> Any:
        """
        Value of the Setting row `name`, or `default` when the row is missing
        or empty.
        """
        from .models import Setting

        key = SETTING_CACHE_KEY.format(name=name)
        value = cache.get(key)
        if value is None:
            value = Setting.objects.filter(name=name).values_list("value", flat=True).first()
            if value is not None:
                cache.set(key, value, CACHE_TIMEOUT)

        if value in (None, ""):
            return default
        return value

    def forget_setting(self, name: str) -> None:
        cache.delete(SETTING_CACHE_KEY.format(name=name))

    def get_clinic_threshold(self) -> int:
        value = self.get_setting("clinic_threshold")
        if value is None:
            return self.default_clinic_threshold
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid clinic_threshold setting {value!r}, using default")
            return self.default_clinic_threshold

    def get_clinic_days_off(self) -> List[str]:
        """
        ISO formatted dates (YYYY-MM-DD) on which the clinic is closed.
        """
        from .models import ClinicDayOff

        days = cache.get(CLINIC_DAYS_OFF_CACHE_KEY)
        if days is None:
            days = [
                day.isoformat()
                for day in ClinicDayOff.objects.order_by("date").values_list("date", flat=True).distinct()
            ]
            cache.set(CLINIC_DAYS_OFF_CACHE_KEY, days, CACHE_TIMEOUT)
        return days

    def __str__(self) -> str:
        return f"AppSettings(timezone={self.timezone}, cutoff={self.cutoff_time})"


app_settings = AppSettings()
