"""
Orders serializers package.
"""

# Checkout request serializers
from .checkout_serializers import (
    AddressSerializer,
    ShippingAddressSerializer,
    CheckoutClientSerializer,
    CheckoutItemSerializer,
    CheckoutPackageSerializer,
    CheckoutPaymentSerializer,
    CheckoutDelegateSerializer,
    CheckoutSerializer,
)

# Order representation serializers
from .order_serializers import (
    AddonSerializer,
    ItemSerializer,
    OrderPackageSerializer,
    InvoiceSerializer,
    OrderSerializer,
    RefundRequestSerializer,
)

__all__ = [
    "AddressSerializer",
    "ShippingAddressSerializer",
    "CheckoutClientSerializer",
    "CheckoutItemSerializer",
    "CheckoutPackageSerializer",
    "CheckoutPaymentSerializer",
    "CheckoutDelegateSerializer",
    "CheckoutSerializer",
    "AddonSerializer",
    "ItemSerializer",
    "OrderPackageSerializer",
    "InvoiceSerializer",
    "OrderSerializer",
    "RefundRequestSerializer",
]
