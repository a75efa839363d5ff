import uuid
from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class Invoice(models.Model):
    """
    The bill for one order, generated once at checkout.
    """

    class InvoiceStatus(models.TextChoices):
        DRAFT = "draft", _("Draft")
        SENT = "sent", _("Sent")
        REFUNDED = "refunded", _("Refunded")

    uuid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    order = models.OneToOneField(
        "orders.Order", on_delete=models.CASCADE, related_name="invoice"
    )
    client = models.ForeignKey(
        "clients.Client", on_delete=models.PROTECT, related_name="invoices"
    )
    discount_uses = models.ForeignKey(
        "discounts.DiscountUses",
        on_delete=models.SET_NULL,
        related_name="invoices",
        null=True,
        blank=True,
    )
    email = models.EmailField()
    status = models.CharField(
        max_length=20, choices=InvoiceStatus.choices, default=InvoiceStatus.DRAFT
    )
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)
    total = models.DecimalField(max_digits=10, decimal_places=2)
    discount_savings = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    billing_address = models.JSONField(default=dict, blank=True)
    shipping_address = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Invoice {self.uuid} ({self.get_status_display()})"

    def mark_sent(self):
        self.status = self.InvoiceStatus.SENT
        self.save(update_fields=["status", "updated_at"])
        return self

    def mark_refunded(self):
        self.status = self.InvoiceStatus.REFUNDED
        self.save(update_fields=["status", "updated_at"])
        return self

    @property
    def refunded_total(self) -> Decimal:
        return sum((refund.amount or Decimal("0.00") for refund in self.refunds.all()), Decimal("0.00"))


class InvoiceLine(models.Model):
    class LineType(models.TextChoices):
        ITEM = "item", _("Item")
        PACKAGE = "package", _("Package")

    invoice = models.ForeignKey(
        Invoice, on_delete=models.CASCADE, related_name="lines", null=True, blank=True
    )
    type = models.CharField(max_length=10, choices=LineType.choices, default=LineType.ITEM)
    item = models.ForeignKey(
        "orders.Item", on_delete=models.SET_NULL, related_name="invoice_lines", null=True, blank=True
    )
    package = models.ForeignKey(
        "products.Package", on_delete=models.SET_NULL, related_name="invoice_lines", null=True, blank=True
    )
    name = models.CharField(max_length=200)
    sku = models.CharField(max_length=100, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.name} x{self.quantity} = {self.total}"


class Refund(models.Model):
    """
    A refund accepted by the payment provider. A null amount is a full refund.
    """

    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="refunds")
    amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    reason = models.CharField(max_length=255, blank=True, null=True)
    provider_reference = models.CharField(max_length=255, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Refund of {self.amount if self.amount is not None else 'full amount'} on {self.invoice_id}"
