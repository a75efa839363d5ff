from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from products.models import Product


class Discount(models.Model):
    class DiscountType(models.TextChoices):
        PERCENTAGE = "PERCENTAGE", "Percentage"
        FIXED_AMOUNT = "FIXED_AMOUNT", "Fixed Amount"

    class DiscountScope(models.TextChoices):
        ORDER = "ORDER", "Entire Order"
        PRODUCT = "PRODUCT", "Specific Products"

    name = models.CharField(max_length=255)
    code = models.CharField(max_length=50, unique=True)
    type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
    )
    scope = models.CharField(
        max_length=20,
        choices=DiscountScope.choices,
        default=DiscountScope.ORDER,
    )
    value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="The value of the discount (percentage or fixed amount).",
    )
    min_purchase_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="The minimum subtotal required for the discount to apply.",
    )
    max_uses_per_client = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="How many orders a single client email may use this code on.",
    )
    applicable_products = models.ManyToManyField(Product, blank=True)

    start_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="The date and time when the discount becomes active.",
    )
    end_date = models.DateTimeField(
        null=True, blank=True, help_text="The date and time when the discount expires."
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.code})"

    @classmethod
    def first_where_code(cls, code: str) -> "Discount":
        """Raises Discount.DoesNotExist for unknown codes."""
        discount = cls.objects.filter(code__iexact=code.strip()).first()
        if discount is None:
            raise cls.DoesNotExist(f"No discount with code '{code}'")
        return discount

    def is_currently_active(self, now=None):
        """Checks if the discount is enabled and within its date range."""
        if not self.is_active:
            return False
        now = now or timezone.now()
        if self.start_date and now < self.start_date:
            return False
        if self.end_date and now > self.end_date:
            return False
        return True

    def clean(self):
        super().clean()

        if self.value is None or self.value <= 0:
            raise ValidationError({
                'value': 'Discount value must be greater than zero.'
            })

        if self.type == self.DiscountType.PERCENTAGE and self.value > Decimal("100"):
            raise ValidationError({
                'value': 'Percentage discount cannot exceed 100%.'
            })


class DiscountUses(models.Model):
    """
    One row per order that used a discount: what was charged before and after.
    """

    discount = models.ForeignKey(
        Discount, on_delete=models.PROTECT, related_name="uses"
    )
    order = models.ForeignKey(
        "orders.Order", on_delete=models.CASCADE, related_name="discount_uses"
    )
    client = models.ForeignKey(
        "clients.Client", on_delete=models.CASCADE, related_name="discount_uses"
    )
    email = models.EmailField()
    input_price = models.DecimalField(max_digits=10, decimal_places=2)
    output_price = models.DecimalField(max_digits=10, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "Discount uses"
        indexes = [
            models.Index(fields=["discount", "email"]),
        ]

    def __str__(self):
        return f"{self.discount.code} on order {self.order_id}"

    @property
    def savings(self):
        return self.input_price - self.output_price
