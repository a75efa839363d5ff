"""
Client and affiliate models.
"""
import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

from checkout_backend.utils.pii import PIIProtection


class ClientManager(models.Manager):
    """Custom manager for Client model"""

    def normalize_email(self, email):
        if email:
            email = email.strip().lower()
        return email

    def get_by_email(self, email):
        return self.get(email=self.normalize_email(email))


class Client(models.Model):
    """
    The person an order is placed for. Each client owns a login account.
    """

    uuid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="client",
    )
    email = models.EmailField(unique=True)
    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ClientManager()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return PIIProtection.mask_email(self.email)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class Affiliate(models.Model):
    """
    Referral partner credited with a payout on every order they bring in.
    """

    class PayoutType(models.TextChoices):
        PERCENT = "percent", "Percent"
        FIXED = "fixed", "Fixed"

    name = models.CharField(max_length=255)
    code = models.CharField(max_length=100, unique=True)
    payout_type = models.CharField(
        max_length=10, choices=PayoutType.choices, default=PayoutType.PERCENT
    )
    payout_value = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name} ({self.code})"
