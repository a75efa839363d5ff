from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, Optional
import logging

import requests
import stripe
from django.conf import settings

from checkout_backend.utils.pii import PIIProtection
from orders.models import Order
from .data import PaymentData
from .exceptions import (
    InvalidCustomer,
    PaymentActionRequired,
    PaymentFailure,
    PaymentProviderError,
)
from .money import from_minor, to_minor

logger = logging.getLogger(__name__)


class PaymentProvider(ABC):
    """
    The Abstract Base Class for a payment provider.
    A successful pay() leaves the order in "paid" with its payment reference.
    """

    name: str = ""

    @abstractmethod
    def pay(self, order: Order, data: PaymentData) -> Order:
        pass

    @abstractmethod
    def refund(self, order: Order, amount: Optional[Decimal] = None, reason: str = None) -> str:
        """
        Refund `amount` (the full charge when None) of the order's payment.
        Returns the provider's refund reference.
        """
        pass

    def cancel_installment(self, data: PaymentData) -> None:
        """Release anything reserved at the provider for an unfinished checkout."""
        pass


class StripePaymentProvider(PaymentProvider):
    """
    Card payments through a confirmed Stripe PaymentIntent.
    """

    name = Order.PaymentService.STRIPE

    def __init__(self):
        stripe.api_key = settings.STRIPE_SECRET_KEY
        self.currency = settings.STRIPE_CURRENCY

    def get_or_create_customer(self, order: Order) -> str:
        user = order.user
        if user is None:
            raise InvalidCustomer("The order has no account to charge.")

        if user.stripe_customer_id:
            return user.stripe_customer_id

        try:
            customer = stripe.Customer.create(
                email=user.email,
                name=order.client.full_name or None,
                metadata={"client_uuid": str(order.client.uuid)},
            )
        except stripe.InvalidRequestError as e:
            logger.error(f"Could not create Stripe customer for {PIIProtection.mask_email(user.email)}: {e}")
            raise InvalidCustomer(e.user_message or "Could not create the payment customer.")

        user.stripe_customer_id = customer.id
        user.save(update_fields=["stripe_customer_id", "updated_at"])
        return customer.id

    def pay(self, order: Order, data: PaymentData) -> Order:
        if not data.payment_method:
            raise PaymentFailure("A payment method is required for card payments.")

        customer_id = self.get_or_create_customer(order)
        amount_cents = to_minor(self.currency, order.final_price)

        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_cents,
                currency=self.currency,
                customer=customer_id,
                payment_method=data.payment_method,
                confirm=True,
                automatic_payment_methods={
                    "enabled": True,
                    "allow_redirects": "never",
                },
                metadata={
                    "order_uuid": str(order.uuid),
                    "po_number": str(order.po_number),
                },
            )
        except stripe.CardError as e:
            raise PaymentFailure(e.user_message or str(e))

        if intent.status == "succeeded":
            logger.info(f"Stripe payment {intent.id} succeeded for order {order.uuid}")
            return order.set_success_payment_data(self.name, intent.id)

        if intent.status == "requires_action":
            raise PaymentActionRequired(
                "This payment requires additional confirmation.", payment=intent
            )

        raise PaymentFailure(
            f"The payment was not completed (status: {intent.status}).", payment=intent
        )

    def refund(self, order: Order, amount: Optional[Decimal] = None, reason: str = None) -> str:
        reference = order.payment_reference
        params: Dict[str, Any] = {
            "metadata": {"order_uuid": str(order.uuid), "reason": reason or ""},
        }
        if reference.startswith("pi_"):
            params["payment_intent"] = reference
        else:
            params["charge"] = reference
        if amount is not None:
            params["amount"] = to_minor(self.currency, amount)

        refund = stripe.Refund.create(**params)
        if "amount" in params:
            refunded = f"{from_minor(self.currency, params['amount'])} {self.currency.upper()}"
        else:
            refunded = "the full charge"
        logger.info(f"Stripe refund {refund.id} ({refund.status}) of {refunded} for order {order.uuid}")
        return refund.id


class SplitItPaymentProvider(PaymentProvider):
    """
    Installment payments. The client authorizes an installment plan in the
    SplitIt widget; checkout verifies the authorization before the order is
    marked paid.
    """

    name = Order.PaymentService.SPLITIT

    def __init__(self):
        self.base_url = settings.SPLITIT_API_URL.rstrip("/")
        self.api_key = settings.SPLITIT_API_KEY
        self.timeout = settings.SPLITIT_TIMEOUT

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _make_request(
        self, method: str, endpoint: str, data: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        """Make authenticated API request to SplitIt."""
        url = f"{self.base_url}{endpoint}"

        try:
            response = requests.request(
                method=method,
                url=url,
                headers=self._get_headers(),
                json=data if data else None,
                timeout=self.timeout,
            )
            response.raise_for_status()

            if response.status_code == 204:
                return {}

            return response.json()

        except requests.RequestException as e:
            logger.error(f"SplitIt API request failed: {method} {url} - {e}")
            raise PaymentProviderError(f"SplitIt API request failed: {e}")

    def pay(self, order: Order, data: PaymentData) -> Order:
        plan_number = data.installment_plan_number
        if not plan_number:
            raise PaymentFailure("An installment plan number is required for SplitIt payments.")

        result = self._make_request(
            "GET", f"/api/installmentplans/{plan_number}/verifyauthorization"
        )
        if not result.get("IsAuthorized"):
            raise PaymentFailure("The installment plan was not authorized.", payment=result)

        authorized = result.get("AuthorizationAmount")
        if authorized is not None and Decimal(str(authorized)) < order.final_price:
            raise PaymentFailure(
                "The authorized installment amount does not cover the order total.",
                payment=result,
            )

        self._make_request(
            "PUT",
            f"/api/installmentplans/{plan_number}/updateorder",
            {"RefOrderNumber": str(order.po_number), "ShippingStatus": "Pending"},
        )

        logger.info(f"SplitIt plan {plan_number} authorized for order {order.uuid}")
        return order.set_success_payment_data(self.name, plan_number)

    def cancel_installment(self, data: PaymentData) -> None:
        if not data.installment_plan_number:
            return

        self._make_request(
            "POST",
            f"/api/installmentplans/{data.installment_plan_number}/cancel",
        )
        logger.info(f"SplitIt plan {data.installment_plan_number} cancelled")

    def refund(self, order: Order, amount: Optional[Decimal] = None, reason: str = None) -> str:
        amount = amount if amount is not None else order.final_price
        result = self._make_request(
            "POST",
            f"/api/installmentplans/{order.payment_reference}/refund",
            {
                "Amount": str(amount),
                "RefundStrategy": "FutureInstallmentsFirst",
            },
        )
        return str(result.get("RefundId", ""))
