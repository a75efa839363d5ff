import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class Product(models.Model):
    """
    A sellable kit or service. Kits are the shippable products identified by
    one of the KITS skus.
    """

    SKU_TODAY = "today"
    SKU_TOMORROW = "tomorrow"
    SKU_FOREVER = "forever"

    KITS = [SKU_TODAY, SKU_TOMORROW, SKU_FOREVER]

    uuid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    title = models.CharField(max_length=200, help_text=_("Name of the product."))
    slug = models.SlugField(max_length=200, unique=True)
    sku = models.CharField(max_length=100, db_index=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    is_cryogenic = models.BooleanField(
        default=False, help_text=_("Sample is stored frozen after analysis.")
    )
    plan = models.CharField(
        max_length=100,
        blank=True,
        null=True,
        help_text=_("Subscription plan identifier, when the product is billed as a subscription."),
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["title"]

    def __str__(self):
        return self.title

    @property
    def is_kit(self):
        return self.sku in self.KITS


class Package(models.Model):
    """
    A bundle of products sold at a single package price.
    """

    uuid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    name = models.CharField(max_length=200)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    products = models.ManyToManyField(
        Product, through="PackageProduct", related_name="packages"
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name


class PackageProduct(models.Model):
    package = models.ForeignKey(
        Package, on_delete=models.CASCADE, related_name="package_products"
    )
    product = models.ForeignKey(Product, on_delete=models.PROTECT)
    quantity = models.PositiveIntegerField(default=1)

    class Meta:
        unique_together = ("package", "product")

    def __str__(self):
        return f"{self.quantity} x {self.product} in {self.package}"


class AddonOption(models.Model):
    """
    Catalogue entry for an add-on that can be attached to an item or package.
    """

    DNA_FRAGMENTATION = "dna-fragmentation"

    code = models.SlugField(max_length=100, unique=True)
    name = models.CharField(max_length=200)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.name} (${self.price})"
