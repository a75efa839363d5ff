"""
Orders views package.
"""

from .checkout_views import CheckoutView, ClinicDaysOffView, OrderRefundView

__all__ = [
    'CheckoutView',
    'ClinicDaysOffView',
    'OrderRefundView',
]
