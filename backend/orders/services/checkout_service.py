from typing import Optional

from django.db import transaction

from checkout_backend.utils.pii import PIIProtection, get_pii_safe_logger
from clients.services import ClientService
from orders.checkout import Cart
from orders.exceptions import OrderException
from orders.models import Order
from orders.signals import order_ready, salesforce_event, send_on_commit
from payments.data import PaymentData
from settings.config import app_settings
from users.services import UserService
from .order_service import OrderService, codes_match

logger = get_pii_safe_logger(__name__)

SALESFORCE_ORDER_CREATED = "order_created"


class CheckoutService:
    """
    Checkout from a validated payload: client lookup, order creation,
    payment, invoice, delegated access and confirmation mails, all in one
    transaction.
    """

    def __init__(self, order_service: Optional[OrderService] = None):
        self.order_service = order_service or OrderService()

    def checkout(self, payload: dict, cart: Cart, payment_data: PaymentData) -> Order:
        client_payload = payload["client"]
        email = client_payload["email"]
        discount_code = (payload.get("discount") or {}).get("code")
        service = self.order_service
        service.cart = cart

        with transaction.atomic():
            client = ClientService.first_or_create(client_payload)

            service.apply_discount(discount_code, email).make_order(
                client, payload
            ).prepare_payment_provider()

            order = service.fresh_order()
            if order.status != Order.OrderStatus.PAYMENT_PROVIDER:
                raise OrderException(
                    f'Invalid order status. Waiting for status "payment-provider", given {order.status}.'
                )

            if order.final_price <= 0:
                order.set_status(Order.OrderStatus.PAID)
            else:
                payment_data.resolve_payment_provider().pay(order, payment_data)

            service.generate_invoice(email)

            delegate = payload.get("delegate")
            if delegate:
                delegated_user = UserService.grant_delegated_access(
                    client.user,
                    delegate["email"],
                    first_name=delegate.get("first_name", ""),
                    last_name=delegate.get("last_name", ""),
                )
                if not codes_match(discount_code, app_settings.delegate_silent_discount_code):
                    service.notify(email, show_billing=False)
                service.notify(delegated_user.email)
            else:
                service.notify(email)

            order = service.fresh_order()
            send_on_commit(order_ready, sender=Order, order=order)
            send_on_commit(
                salesforce_event,
                sender=Order,
                event=self.salesforce_payload(order, payload),
            )

        logger.info(
            f"Checkout completed for {PIIProtection.mask_email(email)}: order {order.uuid}, status {order.status}"
        )
        return order

    @staticmethod
    def salesforce_payload(order: Order, payload: dict) -> dict:
        client = payload["client"]
        return {
            "action": SALESFORCE_ORDER_CREATED,
            "order_uuid": str(order.uuid),
            "po_number": order.po_number,
            "email": client.get("email"),
            "first_name": client.get("first_name", ""),
            "last_name": client.get("last_name", ""),
            "final_price": str(order.final_price),
            "discount_code": (payload.get("discount") or {}).get("code"),
        }

    @staticmethod
    def cancel_pending_payment(payment_data: Optional[PaymentData]) -> None:
        """
        Release a SplitIt installment plan after a failed checkout. Failures
        are logged; the checkout error is what the client sees.
        """
        if payment_data is None or payment_data.get_provider() != Order.PaymentService.SPLITIT:
            return

        try:
            payment_data.resolve_payment_provider().cancel_installment(payment_data)
        except Exception:
            logger.exception(
                f"Could not cancel SplitIt plan {payment_data.installment_plan_number}"
            )
