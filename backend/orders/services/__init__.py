"""
Orders services package.

- OrderService: order creation, invoicing, notification and refunds
- CheckoutService: the checkout transaction around OrderService
"""

from .order_service import OrderService
from .checkout_service import CheckoutService

__all__ = ["OrderService", "CheckoutService"]
