from decimal import Decimal
from functools import partial
from typing import Optional

from django.db import transaction

from checkout_backend.utils.pii import PIIProtection, get_pii_safe_logger
from discounts.calculators import DiscountCalculator, DiscountResponse
from discounts.models import Discount, DiscountUses
from invoices.models import Invoice, Refund
from invoices.services import InvoiceService
from notifications.services import EmailService
from orders.checkout import Cart
from orders.delivery import DeliveryDateResolver
from orders.exceptions import OrderException
from orders.models import Item, Order
from payments.factories import PaymentProviderFactory
from settings.config import app_settings

logger = get_pii_safe_logger(__name__)


def codes_match(code: Optional[str], other: Optional[str]) -> bool:
    return bool(code) and bool(other) and code.strip().lower() == other.strip().lower()


class OrderService:
    """
    Turns a cart into a persisted order and drives it through invoicing,
    notification and refund.

    Steps are chained inside the caller's transaction:

        service = OrderService(cart)
        service.apply_discount(code, email).make_order(client, payload).prepare_payment_provider()
    """

    def __init__(
        self,
        cart: Optional[Cart] = None,
        order: Optional[Order] = None,
        resolver: Optional[DeliveryDateResolver] = None,
        email_service: Optional[EmailService] = None,
    ):
        self.cart = cart or Cart()
        self.order = order
        self.resolver = resolver or DeliveryDateResolver()
        self.email_service = email_service or EmailService()

        self.discount: Optional[Discount] = None
        self.discount_response: Optional[DiscountResponse] = None
        self.discount_uses: Optional[DiscountUses] = None
        self.invoice: Optional[Invoice] = None

    @classmethod
    def with_order(cls, order: Order) -> "OrderService":
        return cls(order=order)

    # --- checkout steps ---

    def apply_discount(self, code: Optional[str], email: str) -> "OrderService":
        """
        Price the cart with the discount `code`. Unknown codes and calculator
        errors are logged and leave the cart undiscounted.
        """
        if not code:
            return self

        try:
            with transaction.atomic():
                self.discount = Discount.first_where_code(code)
                response = DiscountCalculator.discounted_total(
                    self.discount, self.cart.items, self.cart.packages, email
                )
            if response:
                self.discount_response = response if response.success else None
        except Exception:
            self.discount = None
            self.discount_response = None
            logger.exception(
                f"Discount code {code!r} could not be applied for {PIIProtection.mask_email(email)}"
            )

        return self

    def final_price(self) -> Decimal:
        if self.discount_response is not None:
            return self.discount_response.total
        return self.cart.raw_total()

    def make_order(self, client, payload: dict) -> "OrderService":
        """
        Persist the order with its packages, add-ons and items for `client`.
        """
        shipping_address = payload.get("shipping_address") or {}

        order = Order.objects.create(
            status=Order.OrderStatus.CART,
            client=client,
            user=client.user,
            billing_address=payload.get("billing_address") or {},
            shipping_address=shipping_address,
            final_price=self.discount_response.total if self.discount_response else Decimal("0.00"),
            preferred_delivery_date=self.resolver.resolve(
                shipping_address.get("preferred_delivery_date")
            ),
            affiliate=payload.get("affiliate"),
            notes=payload.get("notes"),
        )
        order.final_price = self.final_price()
        order.po_number = Order.next_po_number()
        order.affiliate_payout = order.get_affiliate_payout_amount()
        order.save(update_fields=["final_price", "po_number", "affiliate_payout", "updated_at"])
        self.order = order

        if self.discount_response is not None:
            self.discount_uses = DiscountUses.objects.create(
                discount=self.discount,
                order=order,
                client=client,
                email=client.email,
                input_price=self.discount_response.subtotal,
                output_price=self.discount_response.total,
            )

        for checkout_package in self.cart.packages:
            order_package = checkout_package.into_order_package(order=order)
            order_package.save()
            for checkout_addon in checkout_package.addons:
                checkout_addon.into_addon(
                    order=order, client=client, order_package=order_package
                ).save()

        for checkout_item in self.cart.package_items():
            checkout_item.into_item(
                order=order, client=client, preferred_delivery_date=order.preferred_delivery_date
            ).save()

        for checkout_item in self.cart.items:
            item = checkout_item.into_item(
                order=order,
                client=client,
                po_number=Item.next_po_number(),
                preferred_delivery_date=order.preferred_delivery_date,
            )
            item.save()
            for checkout_addon in checkout_item.addons:
                checkout_addon.into_addon(order=order, client=client, item=item).save()

        logger.info(
            f"Order {order.uuid} (PO {order.po_number}) created for client {client.pk}, "
            f"final price {order.final_price}"
        )
        return self

    def prepare_payment_provider(self) -> "OrderService":
        self.fresh_order().set_status(Order.OrderStatus.PAYMENT_PROVIDER)
        return self

    def generate_invoice(self, email: str) -> "OrderService":
        self.invoice = InvoiceService.generate(
            self.fresh_order(),
            email,
            discount_response=self.discount_response,
            discount_uses=self.discount_uses,
        )
        return self

    def notify(self, email: str, show_billing: bool = True) -> "OrderService":
        """
        Queue the order confirmation for `email` and mark the invoice sent and
        the order emailed. Mails go out once the transaction commits.

        With the companion discount the client gets a copy without billing
        details and the billed copy goes to the support inbox.
        """
        order = self.order
        invoice = self.invoice or order.invoice

        if self.discount is not None and codes_match(self.discount.code, app_settings.companion_discount_code):
            transaction.on_commit(
                partial(self.email_service.send_order_shipped, order, invoice, email, False)
            )
            email = app_settings.support_email

        transaction.on_commit(
            partial(self.email_service.send_order_shipped, order, invoice, email, show_billing)
        )

        invoice.mark_sent()
        order.set_status(Order.OrderStatus.EMAILED)

        if order.contains_product(app_settings.telehealth_product_uuid):
            transaction.on_commit(
                partial(self.email_service.send_telehealth_consult, order.client, email)
            )

        return self

    def fresh_order(self) -> Order:
        self.order.refresh_from_db()
        return self.order

    # --- refunds ---

    def refund(self, amount: Optional[Decimal] = None, reason: Optional[str] = None) -> "OrderService":
        """
        Refund a paid order. The order and invoice are marked refunded and
        the provider refund is issued in one transaction; a provider failure
        rolls the status change back.
        """
        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=self.order.pk)
            self.order = order

            if not order.is_refundable():
                raise OrderException(
                    f'Invalid order status. Waiting for status "paid", given {order.status}.'
                )

            if amount is not None and not (Decimal("0") < Decimal(amount) <= order.final_price):
                raise OrderException(
                    f"Refund amount must be greater than 0 and at most {order.final_price}."
                )

            order.refund(amount)

            if order.final_price > 0:
                if not order.payment_reference:
                    raise OrderException("The order has no payment reference to refund.")

                try:
                    provider = PaymentProviderFactory.get_provider(
                        order.payment_service or Order.PaymentService.STRIPE
                    )
                    reference = provider.refund(order, amount, reason)
                    Refund.objects.create(
                        invoice=order.invoice,
                        amount=amount,
                        reason=reason,
                        provider_reference=reference,
                    )
                except Exception as e:
                    logger.exception(f"Refund failed for order {order.uuid}")
                    raise OrderException("Could not refund the order. Please try again.") from e

            self._queue_refund_emails(order, amount)

        logger.info(f"Order {order.uuid} refunded ({order.refund_amount})")
        return self

    def _queue_refund_emails(self, order: Order, amount):
        user = order.user
        if user is None:
            return

        if user.delegated_by is not None:
            transaction.on_commit(
                partial(self.email_service.send_order_refund, order, amount, user.delegated_by.email, True)
            )
            transaction.on_commit(
                partial(self.email_service.send_order_refund, order, amount, user.email, False)
            )
        else:
            transaction.on_commit(
                partial(self.email_service.send_order_refund, order, amount, user.email)
            )
