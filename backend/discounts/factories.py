from .models import Discount
from .strategies import (
    DiscountStrategy,
    OrderFixedAmountDiscountStrategy,
    OrderPercentageDiscountStrategy,
    ProductFixedAmountDiscountStrategy,
    ProductPercentageDiscountStrategy,
)

Scope = Discount.DiscountScope
Kind = Discount.DiscountType


class DiscountStrategyFactory:
    """Picks the pricing strategy for a discount from its scope and type."""

    _registry = {
        Scope.ORDER: {
            Kind.PERCENTAGE: OrderPercentageDiscountStrategy,
            Kind.FIXED_AMOUNT: OrderFixedAmountDiscountStrategy,
        },
        Scope.PRODUCT: {
            Kind.PERCENTAGE: ProductPercentageDiscountStrategy,
            Kind.FIXED_AMOUNT: ProductFixedAmountDiscountStrategy,
        },
    }

    @classmethod
    def get_strategy(cls, discount: Discount) -> DiscountStrategy:
        try:
            return cls._registry[discount.scope][discount.type]()
        except KeyError:
            raise NotImplementedError(
                f"Discount {discount.code!r} has no pricing rule for "
                f"{discount.scope} / {discount.type}"
            ) from None
