from django.apps import AppConfig


class CheckoutBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "checkout_backend"
