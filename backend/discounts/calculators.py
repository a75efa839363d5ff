from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from django.utils import timezone

from checkout_backend.utils.pii import PIIProtection, get_pii_safe_logger
from orders.calculators import OrderPricingCalculator
from .factories import DiscountStrategyFactory
from .models import Discount, DiscountUses

logger = get_pii_safe_logger(__name__)


@dataclass
class DiscountResponse:
    """
    Outcome of pricing a cart with a discount code. Only a successful
    response may be applied to an order.
    """

    success: bool
    subtotal: Decimal
    total: Decimal
    message: str = ""
    code: Optional[str] = field(default=None)

    @property
    def savings(self) -> Decimal:
        return self.subtotal - self.total


class DiscountCalculator:
    @staticmethod
    def discounted_total(discount: Discount, items, packages, email: str, now=None) -> DiscountResponse:
        """
        Price the cart (standalone items plus packages) with `discount`.

        The response is unsuccessful when the discount is disabled or outside
        its date window, when the cart is below the minimum purchase amount,
        or when `email` already used the code the maximum number of times.
        """
        subtotal = OrderPricingCalculator.total(items, packages)

        def rejected(message):
            logger.info(f"Discount {discount.code} rejected for {PIIProtection.mask_email(email)}: {message}")
            return DiscountResponse(
                success=False, subtotal=subtotal, total=subtotal, message=message, code=discount.code
            )

        if not discount.is_currently_active(now or timezone.now()):
            return rejected("This discount code is not active.")

        if discount.min_purchase_amount and subtotal < discount.min_purchase_amount:
            return rejected(
                f"This discount requires a minimum purchase of ${discount.min_purchase_amount}."
            )

        if discount.max_uses_per_client is not None and email:
            uses = DiscountUses.objects.filter(discount=discount, email__iexact=email).count()
            if uses >= discount.max_uses_per_client:
                return rejected("This discount code has already been used.")

        strategy = DiscountStrategyFactory.get_strategy(discount)
        amount = strategy.apply(discount, subtotal, items, packages)
        total = max(subtotal - amount, Decimal("0.00"))

        return DiscountResponse(
            success=True,
            subtotal=subtotal,
            total=total.quantize(Decimal("0.01")),
            message="Discount applied.",
            code=discount.code,
        )
