"""
Order pricing.

The same calculator prices carts (checkout DTOs from orders.checkout) and
persisted orders (Item / OrderPackage rows) via duck typing:
- items expose .price, .quantity, .package_id and .addons
- packages expose .price and .quantity
"""

from decimal import Decimal
from typing import Iterable, Optional

from payments.money import ZERO, round_half_up


class OrderPricingCalculator:
    @staticmethod
    def addons_of(obj) -> list:
        addons = getattr(obj, "addons", None)
        if addons is None:
            return []
        # Related managers on persisted rows
        if hasattr(addons, "all"):
            return list(addons.all())
        return list(addons)

    @staticmethod
    def addon_total(obj) -> Decimal:
        return sum(
            (Decimal(addon.price) for addon in OrderPricingCalculator.addons_of(obj)),
            ZERO,
        )

    @staticmethod
    def standalone_items(items: Iterable) -> list:
        """Items not bound to a package; package items are paid through the package price."""
        return [item for item in items if getattr(item, "package_id", None) is None]

    @staticmethod
    def item_line_total(item) -> Decimal:
        """quantity x price, plus the item's add-ons once."""
        return (
            Decimal(item.quantity) * Decimal(item.price)
            + OrderPricingCalculator.addon_total(item)
        )

    @staticmethod
    def item_unit_price(item) -> Decimal:
        return Decimal(item.price) + OrderPricingCalculator.addon_total(item)

    @staticmethod
    def item_total_price(item) -> Decimal:
        return Decimal(item.quantity) * OrderPricingCalculator.item_unit_price(item)

    @staticmethod
    def package_line_total(package) -> Decimal:
        return Decimal(package.price) * Decimal(package.quantity)

    @staticmethod
    def total(items: Iterable, packages: Optional[Iterable] = None) -> Decimal:
        """
        Raw cart total: standalone items (with their add-ons) plus packages
        times their quantity.
        """
        items_total = sum(
            (
                OrderPricingCalculator.item_line_total(item)
                for item in OrderPricingCalculator.standalone_items(items)
            ),
            ZERO,
        )
        packages_total = sum(
            (
                OrderPricingCalculator.package_line_total(package)
                for package in (packages or [])
            ),
            ZERO,
        )
        return items_total + packages_total

    @staticmethod
    def affiliate_payout(affiliate, final_price) -> Decimal:
        """
        Commission owed to `affiliate` for an order charged `final_price`:
        a percentage of the price (rounded half up to cents) or a fixed
        amount. Nothing is owed without an affiliate or on free orders.
        """
        final_price = Decimal(final_price or 0)
        if affiliate is None or final_price <= 0:
            return ZERO

        if affiliate.payout_type == affiliate.PayoutType.PERCENT:
            return round_half_up(Decimal(affiliate.payout_value) / Decimal("100") * final_price)

        return Decimal(affiliate.payout_value)
