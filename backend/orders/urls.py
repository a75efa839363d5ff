from django.urls import path

from .views import CheckoutView, ClinicDaysOffView, OrderRefundView

app_name = "orders"

urlpatterns = [
    path("checkout/", CheckoutView.as_view(), name="checkout"),
    path("checkout/clinic-days-off/", ClinicDaysOffView.as_view(), name="clinic-days-off"),
    path("orders/<uuid:uuid>/refund/", OrderRefundView.as_view(), name="order-refund"),
]
