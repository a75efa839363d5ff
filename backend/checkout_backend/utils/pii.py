"""
PII protection utilities used when logging client data.
"""
import logging
from typing import Dict, Any, Optional


class PIIProtection:
    """Utilities for protecting personally identifiable information."""

    PII_FIELDS = {
        'email', 'phone', 'first_name', 'last_name',
        'billing_address', 'shipping_address', 'address', 'full_name'
    }

    @staticmethod
    def mask_email(email: Optional[str]) -> str:
        """
        Mask email address for safe display.
        Example: john.doe@example.com -> jo******@example.com
        """
        if not email or '@' not in email:
            return email or ''

        local, domain = email.split('@', 1)
        if len(local) <= 2:
            masked_local = local[:1] + '*'
        else:
            masked_local = local[:2] + '*' * (len(local) - 2)

        return f"{masked_local}@{domain}"

    @staticmethod
    def scrub_pii_from_dict(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace PII values in a dictionary, recursively.
        Emails are masked, everything else listed in PII_FIELDS is redacted.
        """
        if not isinstance(data, dict):
            return data

        scrubbed = {}
        for key, value in data.items():
            lowered = str(key).lower()
            if lowered == 'email' and isinstance(value, str):
                scrubbed[key] = PIIProtection.mask_email(value)
            elif lowered in PIIProtection.PII_FIELDS:
                scrubbed[key] = '[REDACTED]'
            elif isinstance(value, dict):
                scrubbed[key] = PIIProtection.scrub_pii_from_dict(value)
            elif isinstance(value, list):
                scrubbed[key] = [
                    PIIProtection.scrub_pii_from_dict(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                scrubbed[key] = value

        return scrubbed


class PIISafeLogger:
    """
    Logger wrapper that scrubs PII from the `extra` payload before logging.
    Callers mask inline values with PIIProtection.mask_email.
    """

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def _safe_log(self, level: int, message: str, *args, **kwargs):
        extra = kwargs.get('extra')
        if extra:
            kwargs['extra'] = PIIProtection.scrub_pii_from_dict(extra)
        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        self._safe_log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self._safe_log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._safe_log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._safe_log(logging.ERROR, message, *args, **kwargs)

    def exception(self, message: str, *args, **kwargs):
        kwargs.setdefault('exc_info', True)
        self._safe_log(logging.ERROR, message, *args, **kwargs)


def get_pii_safe_logger(name: str) -> PIISafeLogger:
    """Get a PII-safe logger instance."""
    return PIISafeLogger(name)
