"""
Checkout Workflow Tests

Tests for CheckoutService end to end:
- Order, items, packages and invoice creation
- Discounts (valid, invalid, free orders)
- Stripe and SplitIt payments and their failures
- Delegated access and confirmation mails
- Post-commit signals
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock, patch

import stripe

from clients.models import Client
from discounts.models import Discount, DiscountUses
from invoices.models import Invoice, InvoiceLine
from orders.models import Item, Order
from orders.serializers import CheckoutSerializer
from orders.services import CheckoutService
from orders.signals import order_ready, salesforce_event
from payments.exceptions import PaymentActionRequired, PaymentFailure
from settings.config import app_settings
from users.models import User


def run_checkout(payload):
    serializer = CheckoutSerializer(data=payload)
    serializer.is_valid(raise_exception=True)
    return CheckoutService().checkout(
        serializer.payload(), serializer.cart(), serializer.payment_data()
    )


@pytest.fixture
def stripe_success():
    """Stripe customer and PaymentIntent calls answering with a successful charge."""
    with patch("stripe.Customer.create") as customer_create, patch(
        "stripe.PaymentIntent.create"
    ) as intent_create:
        customer_create.return_value = MagicMock(id="cus_123")
        intent_create.return_value = MagicMock(id="pi_123", status="succeeded")
        yield intent_create


@pytest.fixture
def received_signals():
    """Collects order_ready and salesforce_event sends."""
    received = []

    def receiver(sender, signal=None, **kwargs):
        received.append((signal, kwargs))

    order_ready.connect(receiver, weak=False)
    salesforce_event.connect(receiver, weak=False)
    yield received
    order_ready.disconnect(receiver)
    salesforce_event.disconnect(receiver)


@pytest.mark.django_db
class TestCheckout:
    """Successful checkouts."""

    def test_checkout_creates_paid_order_with_invoice(
        self, checkout_payload, stripe_success, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            order = run_checkout(checkout_payload)

        assert order.status == Order.OrderStatus.EMAILED
        assert order.final_price == Decimal("55.00")
        assert order.payment_service == Order.PaymentService.STRIPE
        assert order.payment_reference == "pi_123"

        invoice = Invoice.objects.get(order=order)
        assert invoice.subtotal == Decimal("55.00")
        assert invoice.total == Decimal("55.00")
        assert invoice.status == Invoice.InvoiceStatus.SENT
        assert invoice.lines.count() == 3
        assert invoice.lines.filter(type=InvoiceLine.LineType.PACKAGE).get().total == Decimal("15.00")

        assert stripe_success.call_args.kwargs["amount"] == 5500

    def test_items_and_po_numbers(self, checkout_payload, stripe_success):
        order = run_checkout(checkout_payload)

        assert order.po_number == app_settings.order_po_number_start
        assert order.items.count() == 3
        assert order.order_packages.count() == 1

        package_item = order.items.get(package__isnull=False)
        assert package_item.po_number is None

        standalone = list(order.items.filter(package__isnull=True).order_by("po_number"))
        first = app_settings.order_po_number_start + app_settings.item_po_number_offset
        assert [item.po_number for item in standalone] == [first, first + 1]

    def test_next_order_uses_the_po_step(self, checkout_payload, stripe_success):
        first = run_checkout(checkout_payload)
        checkout_payload["client"] = dict(checkout_payload["client"], email="second@example.com")
        second = run_checkout(checkout_payload)

        assert second.po_number == first.po_number + app_settings.order_po_number_step

    def test_client_and_user_are_created(self, checkout_payload, stripe_success):
        order = run_checkout(checkout_payload)

        client = Client.objects.get(email="jane@example.com")
        assert order.client == client
        assert order.user == client.user
        assert client.user.stripe_customer_id == "cus_123"

    def test_existing_client_is_reused(self, checkout_payload, kit_client, stripe_success):
        order = run_checkout(checkout_payload)

        assert order.client == kit_client
        assert Client.objects.count() == 1

    def test_preferred_delivery_date_is_kept(self, checkout_payload, stripe_success):
        order = run_checkout(checkout_payload)

        assert order.preferred_delivery_date.isoformat() == "2026-11-10"

    def test_affiliate_payout(self, checkout_payload, affiliate, stripe_success):
        checkout_payload["affiliate"] = affiliate.code

        order = run_checkout(checkout_payload)

        assert order.affiliate == affiliate
        assert order.affiliate_payout == Decimal("5.50")

    def test_item_addons_are_charged(self, checkout_payload, addon_option, stripe_success):
        checkout_payload["items"][0]["addons"] = [addon_option.code]

        order = run_checkout(checkout_payload)

        assert order.final_price == Decimal("60.00")
        assert order.with_dna_fragmentation

    def test_confirmation_mail_sent_after_commit(
        self, checkout_payload, stripe_success, mailoutbox, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            run_checkout(checkout_payload)

        assert len(mailoutbox) == 0

        for callback in callbacks:
            callback()

        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == ["jane@example.com"]
        assert "55.00" in mailoutbox[0].alternatives[0][0]

    def test_signals_sent_after_commit(
        self, checkout_payload, stripe_success, received_signals, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            order = run_checkout(checkout_payload)

        signals = [signal for signal, _ in received_signals]
        assert order_ready in signals
        assert salesforce_event in signals

        event = next(kwargs["event"] for signal, kwargs in received_signals if signal is salesforce_event)
        assert event["order_uuid"] == str(order.uuid)
        assert event["final_price"] == "55.00"


@pytest.mark.django_db
class TestCheckoutDiscounts:
    def test_valid_discount(self, checkout_payload, discount, stripe_success):
        checkout_payload["discount"] = {"code": "ten"}

        order = run_checkout(checkout_payload)

        assert order.final_price == Decimal("49.50")
        use = DiscountUses.objects.get(order=order)
        assert use.input_price == Decimal("55.00")
        assert use.output_price == Decimal("49.50")
        assert order.coupon == "TEN"

        invoice = Invoice.objects.get(order=order)
        assert invoice.subtotal == Decimal("55.00")
        assert invoice.total == Decimal("49.50")
        assert invoice.discount_savings == Decimal("5.50")

    def test_unknown_discount_code_is_ignored(self, checkout_payload, stripe_success):
        checkout_payload["discount"] = {"code": "NOPE"}

        order = run_checkout(checkout_payload)

        assert order.final_price == Decimal("55.00")
        assert not DiscountUses.objects.exists()

    def test_calculator_failure_is_ignored(self, checkout_payload, discount, stripe_success):
        checkout_payload["discount"] = {"code": discount.code}

        with patch(
            "discounts.calculators.DiscountCalculator.discounted_total",
            side_effect=RuntimeError("pricing backend down"),
        ):
            order = run_checkout(checkout_payload)

        assert order.status == Order.OrderStatus.EMAILED
        assert order.final_price == Decimal("55.00")
        assert not DiscountUses.objects.exists()
        assert Invoice.objects.get(order=order).discount_savings is None

    def test_inactive_discount_is_ignored(self, checkout_payload, discount, stripe_success):
        discount.is_active = False
        discount.save()
        checkout_payload["discount"] = {"code": discount.code}

        order = run_checkout(checkout_payload)

        assert order.final_price == Decimal("55.00")

    def test_free_order_skips_payment(self, checkout_payload):
        Discount.objects.create(
            name="Everything",
            code="FREE",
            type=Discount.DiscountType.PERCENTAGE,
            value=Decimal("100.00"),
        )
        checkout_payload["discount"] = {"code": "FREE"}

        with patch("stripe.PaymentIntent.create") as intent_create:
            order = run_checkout(checkout_payload)

        intent_create.assert_not_called()
        assert order.final_price == Decimal("0.00")
        assert order.status == Order.OrderStatus.EMAILED
        assert order.payment_reference is None

    def test_companion_code_copies_support(
        self, checkout_payload, stripe_success, mailoutbox, django_capture_on_commit_callbacks
    ):
        Discount.objects.create(
            name="Companion",
            code=app_settings.companion_discount_code,
            type=Discount.DiscountType.FIXED_AMOUNT,
            value=Decimal("5.00"),
        )
        checkout_payload["discount"] = {"code": app_settings.companion_discount_code}

        with django_capture_on_commit_callbacks(execute=True):
            run_checkout(checkout_payload)

        recipients = sorted(mail.to[0] for mail in mailoutbox)
        assert recipients == sorted(["jane@example.com", app_settings.support_email])


@pytest.mark.django_db
class TestCheckoutPaymentFailures:
    def test_declined_card_rolls_back(self, checkout_payload):
        with patch("stripe.Customer.create", return_value=MagicMock(id="cus_123")), patch(
            "stripe.PaymentIntent.create",
            side_effect=stripe.CardError("Your card was declined.", None, "card_declined"),
        ):
            with pytest.raises(PaymentFailure):
                run_checkout(checkout_payload)

        assert not Order.objects.exists()
        assert not Item.objects.exists()
        assert not Client.objects.exists()

    def test_payment_requiring_action(self, checkout_payload):
        with patch("stripe.Customer.create", return_value=MagicMock(id="cus_123")), patch(
            "stripe.PaymentIntent.create",
            return_value=MagicMock(id="pi_123", status="requires_action"),
        ):
            with pytest.raises(PaymentActionRequired):
                run_checkout(checkout_payload)

        assert not Order.objects.exists()

    def test_card_payment_without_method(self, checkout_payload):
        checkout_payload["payment"] = {"provider": "stripe"}

        with patch("stripe.Customer.create", return_value=MagicMock(id="cus_123")):
            with pytest.raises(PaymentFailure):
                run_checkout(checkout_payload)


@pytest.mark.django_db
class TestSplitItCheckout:
    def test_authorized_plan_marks_order_paid(self, checkout_payload):
        checkout_payload["payment"] = {"provider": "splitit", "installment_plan_number": "PLAN-1"}
        verify = MagicMock(status_code=200)
        verify.json.return_value = {"IsAuthorized": True, "AuthorizationAmount": 55.0}
        update = MagicMock(status_code=204)

        with patch("payments.providers.requests.request", side_effect=[verify, update]) as request:
            order = run_checkout(checkout_payload)

        assert order.payment_service == Order.PaymentService.SPLITIT
        assert order.payment_reference == "PLAN-1"
        assert request.call_count == 2
        assert request.call_args_list[1].kwargs["json"]["RefOrderNumber"] == str(order.po_number)

    def test_unauthorized_plan_fails(self, checkout_payload):
        checkout_payload["payment"] = {"provider": "splitit", "installment_plan_number": "PLAN-1"}
        verify = MagicMock(status_code=200)
        verify.json.return_value = {"IsAuthorized": False}

        with patch("payments.providers.requests.request", return_value=verify):
            with pytest.raises(PaymentFailure):
                run_checkout(checkout_payload)

        assert not Order.objects.exists()


@pytest.mark.django_db
class TestDelegatedCheckout:
    def test_delegate_gets_access_and_mail(
        self, checkout_payload, stripe_success, mailoutbox, django_capture_on_commit_callbacks
    ):
        checkout_payload["delegate"] = {"email": "partner@example.com", "first_name": "Sam"}

        with django_capture_on_commit_callbacks(execute=True):
            order = run_checkout(checkout_payload)

        delegate = User.objects.get(email="partner@example.com")
        assert delegate.delegated_by == order.user
        assert delegate.is_delegated

        recipients = sorted(mail.to[0] for mail in mailoutbox)
        assert recipients == ["jane@example.com", "partner@example.com"]

        client_mail = next(mail for mail in mailoutbox if mail.to == ["jane@example.com"])
        assert "Billing address" not in client_mail.alternatives[0][0]

    def test_telehealth_product_sends_consult_mail(
        self, checkout_payload, product, stripe_success, mailoutbox,
        django_capture_on_commit_callbacks, monkeypatch
    ):
        monkeypatch.setattr(app_settings, "telehealth_product_uuid", str(product.uuid))

        with django_capture_on_commit_callbacks(execute=True):
            run_checkout(checkout_payload)

        subjects = [mail.subject for mail in mailoutbox]
        assert "Book your telehealth consultation" in subjects
        assert len(mailoutbox) == 2
