from django.db import models


class Setting(models.Model):
    """
    Runtime override for a business constant, edited by staff.
    Known names: clinic_threshold.
    """

    CLINIC_THRESHOLD = "clinic_threshold"

    name = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=255, blank=True, null=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name}={self.value}"


class ClinicDayOff(models.Model):
    """
    A date on which the clinic does not receive deliveries.
    """

    date = models.DateField(db_index=True)
    clinic = models.CharField(max_length=100, blank=True)
    reason = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["date"]
        verbose_name = "Clinic day off"
        verbose_name_plural = "Clinic days off"

    def __str__(self):
        return f"{self.date.isoformat()} ({self.reason or 'closed'})"
