"""
Cart objects built from a validated checkout payload.

They carry catalogue prices (never prices sent by the client) and know how to
turn themselves into unsaved order rows.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from products.models import AddonOption, Package, Product
from .calculators import OrderPricingCalculator
from .models import Addon, Item, OrderPackage


@dataclass
class CheckoutAddon:
    option: AddonOption

    @property
    def price(self) -> Decimal:
        return self.option.price

    def into_addon(self, **extra) -> Addon:
        return Addon(
            option=self.option,
            code=self.option.code,
            name=self.option.name,
            price=self.option.price,
            **extra,
        )


@dataclass
class CheckoutItem:
    product: Product
    quantity: int = 1
    price: Optional[Decimal] = None
    package: Optional[Package] = None
    number_of_kits: int = 1
    considering_freezing: Optional[str] = None
    notes: Optional[str] = None
    shipping_address: dict = field(default_factory=dict)
    addons: List[CheckoutAddon] = field(default_factory=list)

    def __post_init__(self):
        if self.price is None:
            self.price = self.product.price

    @property
    def product_id(self):
        return self.product.pk

    @property
    def package_id(self):
        return self.package.pk if self.package is not None else None

    @property
    def title(self) -> str:
        return self.product.title

    def into_item(self, **extra) -> Item:
        return Item(
            product=self.product,
            package=self.package,
            title=self.title,
            price=self.price,
            quantity=self.quantity,
            number_of_kits=self.number_of_kits,
            considering_freezing=self.considering_freezing,
            notes=self.notes,
            shipping_address=self.shipping_address,
            **extra,
        )


@dataclass
class CheckoutPackage:
    package: Package
    quantity: int = 1
    addons: List[CheckoutAddon] = field(default_factory=list)
    shipping_address: dict = field(default_factory=dict)

    @property
    def price(self) -> Decimal:
        return self.package.price

    @property
    def items(self) -> List[CheckoutItem]:
        """One item per product in the package, bound to the package."""
        return [
            CheckoutItem(
                product=package_product.product,
                quantity=package_product.quantity * self.quantity,
                package=self.package,
                shipping_address=self.shipping_address,
            )
            for package_product in self.package.package_products.select_related("product")
        ]

    def into_order_package(self, **extra) -> OrderPackage:
        return OrderPackage(package=self.package, quantity=self.quantity, **extra)


@dataclass
class Cart:
    items: List[CheckoutItem] = field(default_factory=list)
    packages: List[CheckoutPackage] = field(default_factory=list)

    def package_items(self) -> List[CheckoutItem]:
        return [item for package in self.packages for item in package.items]

    def raw_total(self) -> Decimal:
        return OrderPricingCalculator.total(self.items, self.packages)

    def is_empty(self) -> bool:
        return not self.items and not self.packages
