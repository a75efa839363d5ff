import uuid
from datetime import timedelta
from decimal import Decimal

import pytz
from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.crypto import get_random_string
from django.utils.translation import gettext_lazy as _

from clients.models import Affiliate, Client
from products.models import AddonOption, Package, Product
from settings.config import app_settings
from .calculators import OrderPricingCalculator
from .exceptions import OrderException
from .signals import order_approved, send_on_commit


def human_date(value) -> str:
    """October 18, 2026"""
    return f"{value:%B} {value.day}, {value.year}"


def address_contains_po_box(address) -> bool:
    line = (address or {}).get("address_1")
    if not line:
        return False
    return "po box" in line.lower()


def address_in_united_states(address) -> bool:
    return (address or {}).get("country") == "US"


class ShippingStatus(models.TextChoices):
    READY = "ready-for-shipping", _("Ready")
    SENT = "shipping-details-sent", _("Sent")
    SHIPPED = "shipped", _("Shipped")


VALID_SHIPPING_TRANSITIONS = {
    None: [ShippingStatus.READY],
    ShippingStatus.READY: [ShippingStatus.SENT],
    ShippingStatus.SENT: [ShippingStatus.SHIPPED],
    ShippingStatus.SHIPPED: [],
}


class ShippableMixin:
    """
    Shipping, approval and delivery-date behaviour shared by orders and items.
    Concrete models provide approved_at, shipping_status, shipping_address,
    preferred_delivery_date and preferred_delivery_date_confirmed_at.
    """

    @property
    def approved(self) -> bool:
        return self.approved_at is not None

    @property
    def confirmed_delivery_date(self) -> bool:
        return self.preferred_delivery_date_confirmed_at is not None

    def default_delivery_date(self):
        created = self.created_at or timezone.now()
        return (created + timedelta(days=1)).date()

    @property
    def human_delivery_date(self) -> str:
        return human_date(self.preferred_delivery_date or self.default_delivery_date())

    def contains_po_box(self) -> bool:
        return address_contains_po_box(self.shipping_address)

    def is_in_united_states(self) -> bool:
        return address_in_united_states(self.shipping_address)

    def approve(self, clinic: str = None):
        """Stamp approved_at once; approving an approved record changes nothing."""
        if self.approved_at is not None:
            return self

        self.approved_at = timezone.now()
        if clinic is not None:
            self.clinic = clinic
        self.save()
        return self

    def set_clinic(self, clinic):
        self.clinic = clinic
        self.save()
        return self

    def set_shipping_status(self, status):
        if status == self.shipping_status:
            return self

        if status not in VALID_SHIPPING_TRANSITIONS.get(self.shipping_status, []):
            raise OrderException(
                f"Cannot move shipping status from {self.shipping_status} to {status}."
            )

        self.shipping_status = status
        self.save()
        return self

    def can_be_handled_by_clinic(self) -> bool:
        """
        Whether the clinic still has capacity on this record's delivery date.
        """
        threshold = app_settings.get_clinic_threshold()
        approved = type(self).objects.approved_for_clinic(
            app_settings.clinic_code, self.preferred_delivery_date
        ).count()
        return approved <= threshold


class ApprovableQuerySet(models.QuerySet):
    def approved_for_clinic(self, clinic: str, date=None):
        qs = self.filter(approved_at__isnull=False, clinic=clinic)
        if date is not None:
            qs = qs.filter(preferred_delivery_date=date)
        return qs

    def number(self, po_number):
        return self.filter(po_number=po_number)


class OrderQuerySet(ApprovableQuerySet):
    def paid(self):
        return self.filter(status__in=Order.PAID_STATUSES)


class Order(ShippableMixin, models.Model):
    class OrderStatus(models.TextChoices):
        CART = "cart", _("Cart")
        PAYMENT_PROVIDER = "payment-provider", _("Payment Provider")
        PAID = "paid", _("Paid")
        EMAILED = "emailed", _("Confirmation email sent to the client")
        EXPIRED = "expired", _("Expired")
        REJECTED = "rejected", _("Rejected")
        REFUNDED = "refunded", _("Refunded")

    class PaymentService(models.TextChoices):
        STRIPE = "stripe", _("Stripe")
        SPLITIT = "splitit", _("SplitIt")

    ShippingStatus = ShippingStatus

    # Valid status transitions for the order state machine
    VALID_STATUS_TRANSITIONS = {
        OrderStatus.CART: [
            OrderStatus.PAYMENT_PROVIDER,
            OrderStatus.EXPIRED,
        ],
        OrderStatus.PAYMENT_PROVIDER: [
            OrderStatus.PAID,
            OrderStatus.REJECTED,
            OrderStatus.EXPIRED,
        ],
        OrderStatus.PAID: [
            OrderStatus.EMAILED,
            OrderStatus.REFUNDED,
        ],
        OrderStatus.EMAILED: [
            OrderStatus.EMAILED,
            OrderStatus.REFUNDED,
        ],
        OrderStatus.REFUNDED: [
            OrderStatus.REFUNDED,
        ],
        OrderStatus.EXPIRED: [],
        OrderStatus.REJECTED: [],
    }

    PAID_STATUSES = [OrderStatus.PAID, OrderStatus.EMAILED]
    REFUNDABLE_STATUSES = [OrderStatus.PAID, OrderStatus.EMAILED, OrderStatus.REFUNDED]

    uuid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    token = models.CharField(max_length=64, unique=True, editable=False)
    po_number = models.PositiveIntegerField(null=True, blank=True, db_index=True)
    status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.CART
    )
    shipping_status = models.CharField(
        max_length=30,
        choices=ShippingStatus.choices,
        default=ShippingStatus.READY,
        null=True,
        blank=True,
    )

    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name="orders")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
        null=True,
        blank=True,
    )
    affiliate = models.ForeignKey(
        Affiliate,
        on_delete=models.SET_NULL,
        related_name="orders",
        null=True,
        blank=True,
    )
    packages = models.ManyToManyField(
        Package, through="OrderPackage", related_name="orders"
    )

    final_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    refund_amount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    affiliate_payout = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    payment_service = models.CharField(
        max_length=20, choices=PaymentService.choices, blank=True, null=True
    )
    payment_reference = models.CharField(max_length=255, blank=True, null=True)

    billing_address = models.JSONField(default=dict, blank=True)
    shipping_address = models.JSONField(default=dict, blank=True)
    preferred_delivery_date = models.DateField(null=True, blank=True)
    preferred_delivery_date_confirmed_at = models.DateTimeField(null=True, blank=True)

    clinic = models.CharField(max_length=100, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    considering_freezing = models.CharField(max_length=10, blank=True, null=True)
    auto = models.BooleanField(default=False)
    vip = models.BooleanField(default=False)

    submitted_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = OrderQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["clinic", "preferred_delivery_date"]),
        ]

    def __str__(self):
        return f"Order {self.po_number or self.uuid} ({self.get_status_display()})"

    def save(self, *args, **kwargs):
        if not self.token:
            self.token = get_random_string(64)
        super().save(*args, **kwargs)

    # --- pricing ---

    def total(self, items=None, packages=None) -> Decimal:
        """
        Raw total of this order, or of the given items/packages.
        """
        if items is None:
            items = self.items.prefetch_related("addons")
        if packages is None:
            packages = self.order_packages.select_related("package")
        return OrderPricingCalculator.total(items, packages)

    def get_affiliate_payout_amount(self) -> Decimal:
        return OrderPricingCalculator.affiliate_payout(self.affiliate, self.final_price)

    @classmethod
    def next_po_number(cls) -> int:
        """
        Next order PO number. Must be called inside a transaction so the row
        lock on the latest order holds until the new number is saved.
        """
        last = (
            cls.objects.select_for_update()
            .filter(po_number__isnull=False)
            .order_by("-po_number")
            .first()
        )
        if last is None:
            return app_settings.order_po_number_start
        return last.po_number + app_settings.order_po_number_step

    # --- state transitions ---

    def can_transition_to(self, status) -> bool:
        return status in self.VALID_STATUS_TRANSITIONS.get(self.status, [])

    def set_status(self, status):
        if status not in self.OrderStatus.values:
            raise OrderException(f"'{status}' is not a valid order status.")

        if not self.can_transition_to(status):
            raise OrderException(
                f'Invalid order status. Cannot move from "{self.status}" to "{status}".'
            )

        self.status = status
        self.save(update_fields=["status", "updated_at"])
        return self

    def set_success_payment_data(self, payment_service: str, payment_reference: str):
        self.set_status(self.OrderStatus.PAID)
        self.payment_service = payment_service
        self.payment_reference = payment_reference
        self.save(update_fields=["payment_service", "payment_reference", "updated_at"])
        return self

    def refund(self, amount=None):
        """
        Mark the order and its invoice refunded. `amount` defaults to the
        full final price.
        """
        self.set_status(self.OrderStatus.REFUNDED)
        self.refund_amount = Decimal(amount) if amount is not None else self.final_price
        self.refunded_at = timezone.now()
        self.save(update_fields=["refund_amount", "refunded_at", "updated_at"])

        invoice = getattr(self, "invoice", None)
        if invoice is not None:
            invoice.mark_refunded()
        return self

    def complete(self):
        self.completed_at = timezone.now()
        self.save(update_fields=["completed_at", "updated_at"])
        send_on_commit(order_approved, sender=Order, order=self)
        return self

    def cancel(self):
        self.approved_at = None
        self.shipping_status = None
        self.preferred_delivery_date = None
        self.preferred_delivery_date_confirmed_at = None
        self.cancelled_at = timezone.now()
        self.save()
        return self

    def make_vip(self):
        self.vip = True
        self.save(update_fields=["vip", "updated_at"])
        return self

    def confirm_delivery_date(self, date=None):
        if date is not None:
            self.preferred_delivery_date = date
        self.preferred_delivery_date_confirmed_at = timezone.now()
        self.save()
        return self

    # --- derived attributes ---

    def is_paid(self) -> bool:
        return self.status in self.PAID_STATUSES

    def is_not_paid(self) -> bool:
        return not self.is_paid()

    def is_refundable(self) -> bool:
        return self.status in self.REFUNDABLE_STATUSES

    @property
    def completed(self) -> bool:
        return self.completed_at is not None

    @property
    def coupon(self):
        use = self.discount_uses.select_related("discount").first()
        return use.discount.code if use else None

    @property
    def advisor_email(self) -> str:
        return app_settings.client_service_inbox

    @property
    def shipment_week_day(self) -> str:
        """
        Weekday the kit ships: orders placed Thursday to Saturday ship on
        Monday, otherwise the day after the order.
        """
        created = (self.created_at or timezone.now()).astimezone(
            pytz.timezone(app_settings.shipment_timezone)
        )
        if created.weekday() in (3, 4, 5):
            return "Monday"
        return (created + timedelta(days=1)).strftime("%A")

    @property
    def type(self):
        item = self.items.select_related("product").first()
        return item.product.title if item else None

    def products(self):
        return [item.product for item in self.items.select_related("product")]

    def has_subscriptions(self) -> bool:
        return any(product.plan for product in self.products())

    def has_cryogenic(self) -> bool:
        return any(product.is_cryogenic for product in self.products())

    def has_today_package(self) -> bool:
        return any(product.sku == Product.SKU_TODAY for product in self.products())

    def has_tomorrow_package(self) -> bool:
        return any(product.sku == Product.SKU_TOMORROW for product in self.products())

    def contains_product(self, product_uuid) -> bool:
        return self.items.filter(product__uuid=product_uuid).exists()

    @property
    def with_dna_fragmentation(self) -> bool:
        return self.addons.filter(code=AddonOption.DNA_FRAGMENTATION).exists()


class ItemQuerySet(ApprovableQuerySet):
    def ready_for_shipping(self, today=None):
        """
        Approved items waiting to ship whose delivery date is two business
        days after `today`. Orders using the shipping-hold discount code are
        left out.
        """
        from .delivery import add_weekdays

        today = today or timezone.localdate()
        qs = self.filter(
            approved_at__isnull=False,
            shipping_status=ShippingStatus.READY,
            preferred_delivery_date=add_weekdays(today, 2),
        )
        hold_code = app_settings.shipping_hold_discount_code
        if hold_code:
            qs = qs.exclude(order__discount_uses__discount__code__iexact=hold_code)
        return qs.select_related("order")


class Item(ShippableMixin, models.Model):
    class ConsideringFreezing(models.TextChoices):
        YES = "yes", _("Yes, likely if the sample is good")
        NO = "no", _("No, just here to test")
        NOT_SURE = "not_sure", _("I'm not sure yet, it depends")

    ShippingStatus = ShippingStatus

    uuid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="items")
    package = models.ForeignKey(
        Package, on_delete=models.PROTECT, related_name="items", null=True, blank=True
    )
    client = models.ForeignKey(
        Client, on_delete=models.PROTECT, related_name="items", null=True, blank=True
    )

    title = models.CharField(max_length=200)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1)
    number_of_kits = models.PositiveIntegerField(default=1)
    po_number = models.PositiveIntegerField(null=True, blank=True, db_index=True)

    clinic = models.CharField(max_length=100, blank=True, null=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    shipping_address = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True, null=True)
    considering_freezing = models.CharField(
        max_length=10, choices=ConsideringFreezing.choices, blank=True, null=True
    )
    shipping_status = models.CharField(
        max_length=30,
        choices=ShippingStatus.choices,
        default=ShippingStatus.READY,
        null=True,
        blank=True,
    )
    preferred_delivery_date = models.DateField(null=True, blank=True)
    preferred_delivery_date_confirmed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ItemQuerySet.as_manager()

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.title} x{self.quantity}"

    @classmethod
    def next_po_number(cls) -> int:
        """
        Items number on their own sequence. The first item ever starts
        above the latest order number by a fixed offset.
        """
        last = (
            cls.objects.select_for_update()
            .filter(po_number__isnull=False)
            .order_by("-po_number")
            .first()
        )
        if last is not None:
            return last.po_number + 1

        last_order = (
            Order.objects.filter(po_number__isnull=False).order_by("-po_number").first()
        )
        base = last_order.po_number if last_order else app_settings.order_po_number_start
        return base + app_settings.item_po_number_offset

    def has_package(self) -> bool:
        return self.package_id is not None

    def get_unit_price(self) -> Decimal:
        return OrderPricingCalculator.item_unit_price(self)

    def get_total_price(self) -> Decimal:
        return OrderPricingCalculator.item_total_price(self)

    def cancel(self):
        self.approved_at = None
        self.shipping_status = None
        self.preferred_delivery_date = None
        self.preferred_delivery_date_confirmed_at = None
        self.save()
        return self

    def set_considering_freezing(self, considering: str):
        if considering not in self.ConsideringFreezing.values:
            raise OrderException(f"'{considering}' is not a valid freezing choice.")
        self.considering_freezing = considering
        self.save(update_fields=["considering_freezing", "updated_at"])
        return self

    def is_analysis_only(self) -> bool:
        return self.considering_freezing == self.ConsideringFreezing.NO

    def is_kit(self) -> bool:
        return self.product.is_kit

    def is_shippable(self) -> bool:
        return self.is_kit()

    def is_today(self) -> bool:
        return self.product.sku == Product.SKU_TODAY

    def is_tomorrow(self) -> bool:
        return self.product.sku == Product.SKU_TOMORROW

    def is_forever(self) -> bool:
        return self.product.sku == Product.SKU_FOREVER

    def has_dna_fragmentation(self) -> bool:
        return self.addons.filter(code=AddonOption.DNA_FRAGMENTATION).exists()


class OrderPackage(models.Model):
    """
    A package bought in an order, with its quantity.
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="order_packages")
    package = models.ForeignKey(Package, on_delete=models.PROTECT, related_name="order_packages")
    quantity = models.PositiveIntegerField(default=1)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.package} x{self.quantity}"

    @property
    def price(self) -> Decimal:
        return self.package.price

    @property
    def total_price(self) -> Decimal:
        return OrderPricingCalculator.package_line_total(self)


class Addon(models.Model):
    """
    Priced extra attached to an item or an order package. Name and price are
    copied from the AddonOption at checkout.
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="addons")
    client = models.ForeignKey(
        Client, on_delete=models.PROTECT, related_name="addons", null=True, blank=True
    )
    item = models.ForeignKey(
        Item, on_delete=models.CASCADE, related_name="addons", null=True, blank=True
    )
    order_package = models.ForeignKey(
        OrderPackage, on_delete=models.CASCADE, related_name="addons", null=True, blank=True
    )
    option = models.ForeignKey(
        AddonOption, on_delete=models.SET_NULL, related_name="addons", null=True, blank=True
    )
    code = models.SlugField(max_length=100)
    name = models.CharField(max_length=200)
    price = models.DecimalField(max_digits=10, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name} (${self.price})"

    def is_dna_fragmentation(self) -> bool:
        return self.code == AddonOption.DNA_FRAGMENTATION
