from django.shortcuts import get_object_or_404
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from checkout_backend.utils.pii import get_pii_safe_logger
from orders.exceptions import OrderException
from orders.models import Order
from orders.serializers import CheckoutSerializer, OrderSerializer, RefundRequestSerializer
from orders.services import CheckoutService, OrderService
from payments.exceptions import InvalidCustomer, PaymentActionRequired, PaymentFailure
from settings.config import app_settings

logger = get_pii_safe_logger(__name__)

GENERIC_CHECKOUT_ERROR = "Something went wrong on our end, please contact support for help."


def error_response(message, status_code):
    return Response({"errors": message}, status=status_code)


@method_decorator(ratelimit(key="ip", rate="30/m", method="POST", block=True), name="post")
class CheckoutView(APIView):
    """Place an order and pay for it."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment_data = serializer.payment_data()

        try:
            order = CheckoutService().checkout(
                serializer.payload(), serializer.cart(), payment_data
            )
        except (PaymentActionRequired, PaymentFailure, InvalidCustomer) as e:
            logger.exception(f"Checkout payment declined: {e}")
            return error_response(str(e), status.HTTP_422_UNPROCESSABLE_ENTITY)
        except OrderException as e:
            logger.exception(f"Checkout rejected: {e}")
            return error_response(str(e), status.HTTP_422_UNPROCESSABLE_ENTITY)
        except Exception:
            logger.exception("Checkout failed")
            CheckoutService.cancel_pending_payment(payment_data)
            return error_response(GENERIC_CHECKOUT_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class ClinicDaysOffView(APIView):
    """Dates no delivery can be booked on."""

    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response(app_settings.get_clinic_days_off())


class OrderRefundView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def post(self, request, uuid):
        order = get_object_or_404(Order, uuid=uuid)
        serializer = RefundRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            service = OrderService.with_order(order).refund(
                amount=serializer.validated_data.get("amount"),
                reason=serializer.validated_data.get("reason"),
            )
        except OrderException as e:
            logger.warning(f"Refund rejected for order {order.uuid}: {e}")
            return error_response(str(e), status.HTTP_422_UNPROCESSABLE_ENTITY)

        return Response(OrderSerializer(service.fresh_order()).data)
