from abc import ABC, abstractmethod
from decimal import Decimal
import logging

from orders.calculators import OrderPricingCalculator
from .models import Discount

logger = logging.getLogger(__name__)


class DiscountStrategy(ABC):
    """The interface for a discount strategy."""

    @abstractmethod
    def apply(self, discount: Discount, subtotal: Decimal, items, packages) -> Decimal:
        """Return the amount to take off `subtotal`."""
        pass


class OrderPercentageDiscountStrategy(DiscountStrategy):
    """Applies a percentage-based discount to the entire cart subtotal."""

    def apply(self, discount: Discount, subtotal: Decimal, items, packages) -> Decimal:
        if subtotal <= 0:
            return Decimal("0.00")

        discount_percentage = Decimal(discount.value) / Decimal("100")
        discount_amount = subtotal * discount_percentage
        return discount_amount.quantize(Decimal("0.01"))


class OrderFixedAmountDiscountStrategy(DiscountStrategy):
    """Applies a fixed amount discount to the entire cart subtotal."""

    def apply(self, discount: Discount, subtotal: Decimal, items, packages) -> Decimal:
        if subtotal <= 0:
            return Decimal("0.00")

        discount_amount = min(subtotal, Decimal(discount.value))
        return discount_amount.quantize(Decimal("0.01"))


class ProductPercentageDiscountStrategy(DiscountStrategy):
    """Applies a percentage discount to standalone items of specific products."""

    def apply(self, discount: Discount, subtotal: Decimal, items, packages) -> Decimal:
        applicable_products_ids = set(
            discount.applicable_products.values_list("id", flat=True)
        )
        if not applicable_products_ids:
            return Decimal("0.00")

        total_discount = Decimal("0.00")
        discount_percentage = Decimal(discount.value) / Decimal("100")
        for item in OrderPricingCalculator.standalone_items(items):
            if item.product_id in applicable_products_ids:
                total_discount += OrderPricingCalculator.item_line_total(item) * discount_percentage

        logger.debug(f"Product discount {discount.code} amounts to {total_discount}")
        return min(subtotal, total_discount).quantize(Decimal("0.01"))


class ProductFixedAmountDiscountStrategy(DiscountStrategy):
    """Takes a fixed amount off each matching standalone item line."""

    def apply(self, discount: Discount, subtotal: Decimal, items, packages) -> Decimal:
        applicable_products_ids = set(
            discount.applicable_products.values_list("id", flat=True)
        )
        if not applicable_products_ids:
            return Decimal("0.00")

        total_discount = Decimal("0.00")
        for item in OrderPricingCalculator.standalone_items(items):
            if item.product_id in applicable_products_ids:
                line_total = OrderPricingCalculator.item_line_total(item)
                total_discount += min(line_total, Decimal(discount.value))

        return min(subtotal, total_discount).quantize(Decimal("0.01"))
