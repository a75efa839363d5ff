"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
from decimal import Decimal

import pytest
from django.core.cache import cache

from settings.config import app_settings


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def clear_cache_after_test():
    """
    Clear cache after each test to prevent cache pollution.

    Clinic days off and Setting values are cached; without this a row created
    in one test would leak into the next.
    """
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def reset_app_settings():
    """
    Reload AppSettings after each test so override_settings(CHECKOUT=...)
    does not stick to the singleton.
    """
    yield
    app_settings.reload()


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.post('/api/checkout/', payload, format='json')
            assert response.status_code == 201
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def admin_user(db):
    from users.models import User
    return User.objects.create_superuser(email="admin@example.com", password="secret")


@pytest.fixture
def admin_client(api_client, admin_user):
    """API client authenticated as a staff user."""
    api_client.force_authenticate(user=admin_user)
    return api_client


# ============================================================================
# CATALOGUE FIXTURES
# ============================================================================

@pytest.fixture
def product(db):
    from products.models import Product
    return Product.objects.create(
        title="Fertility Kit",
        slug="fertility-kit",
        sku="kit",
        price=Decimal("10.00"),
    )


@pytest.fixture
def other_product(db):
    from products.models import Product
    return Product.objects.create(
        title="Hormone Panel",
        slug="hormone-panel",
        sku="panel",
        price=Decimal("10.00"),
    )


@pytest.fixture
def package(db, product):
    """A 15.00 package holding one kit."""
    from products.models import Package, PackageProduct
    package = Package.objects.create(name="Starter Package", price=Decimal("15.00"))
    PackageProduct.objects.create(package=package, product=product, quantity=1)
    return package


@pytest.fixture
def addon_option(db):
    from products.models import AddonOption
    return AddonOption.objects.create(
        code=AddonOption.DNA_FRAGMENTATION,
        name="DNA Fragmentation",
        price=Decimal("5.00"),
    )


@pytest.fixture
def discount(db):
    """10% off the whole order."""
    from discounts.models import Discount
    return Discount.objects.create(
        name="Ten Percent",
        code="TEN",
        type=Discount.DiscountType.PERCENTAGE,
        scope=Discount.DiscountScope.ORDER,
        value=Decimal("10.00"),
    )


@pytest.fixture
def affiliate(db):
    from clients.models import Affiliate
    return Affiliate.objects.create(
        name="Clinic Partner",
        code="PARTNER",
        payout_type=Affiliate.PayoutType.PERCENT,
        payout_value=Decimal("10.00"),
    )


# ============================================================================
# CLIENT & ORDER FIXTURES
# ============================================================================

@pytest.fixture
def client_payload():
    return {
        "email": "jane@example.com",
        "first_name": "Jane",
        "last_name": "Doe",
        "phone": "555-0100",
    }


@pytest.fixture
def kit_client(db, client_payload):
    from clients.services import ClientService
    return ClientService.first_or_create(client_payload)


@pytest.fixture
def shipping_address():
    return {
        "first_name": "Jane",
        "last_name": "Doe",
        "address_1": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "postcode": "62701",
        "country": "US",
        "preferred_delivery_date": "2026-11-10",
    }


@pytest.fixture
def checkout_payload(client_payload, shipping_address, product, other_product, package):
    """
    Two standalone items (10.00 x 2 each) and one 15.00 package: 55.00.
    """
    return {
        "client": client_payload,
        "items": [
            {"product": str(product.uuid), "quantity": 2},
            {"product": str(other_product.uuid), "quantity": 2},
        ],
        "packages": [{"package": str(package.uuid), "quantity": 1}],
        "payment": {"provider": "stripe", "payment_method": "pm_card_visa"},
        "billing_address": {k: v for k, v in shipping_address.items() if k != "preferred_delivery_date"},
        "shipping_address": shipping_address,
    }


@pytest.fixture
def paid_order(db, kit_client, product):
    """A 20.00 order paid through Stripe, with its invoice."""
    from invoices.services import InvoiceService
    from orders.models import Item, Order

    order = Order.objects.create(
        client=kit_client,
        user=kit_client.user,
        status=Order.OrderStatus.PAID,
        final_price=Decimal("20.00"),
        payment_service=Order.PaymentService.STRIPE,
        payment_reference="pi_paid_123",
        po_number=19480,
    )
    Item.objects.create(
        order=order,
        client=kit_client,
        product=product,
        title=product.title,
        price=product.price,
        quantity=2,
        po_number=29480,
    )
    InvoiceService.generate(order, kit_client.email)
    return order
