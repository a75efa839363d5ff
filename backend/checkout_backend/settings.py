"""
Django settings for checkout_backend project.

Values come from the environment (a local .env file is loaded first).
Business constants used by the checkout workflow live in CHECKOUT.
"""

import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "django-insecure-checkout-backend-dev-key")

DEBUG = env_bool("DJANGO_DEBUG", default=False)

ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h]

ENVIRONMENT = os.environ.get("APP_ENV", "production")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "checkout_backend",
    "users",
    "clients",
    "products",
    "settings",
    "discounts",
    "orders",
    "invoices",
    "payments",
    "notifications",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "checkout_backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
            ],
        },
    },
]

WSGI_APPLICATION = "checkout_backend.wsgi.application"
ASGI_APPLICATION = "checkout_backend.asgi.application"

if os.environ.get("POSTGRES_DB"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ["POSTGRES_DB"],
            "USER": os.environ.get("POSTGRES_USER", "postgres"),
            "PASSWORD": os.environ.get("POSTGRES_PASSWORD", ""),
            "HOST": os.environ.get("POSTGRES_HOST", "localhost"),
            "PORT": os.environ.get("POSTGRES_PORT", "5432"),
            "ATOMIC_REQUESTS": False,
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

AUTH_USER_MODEL = "users.User"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "checkout-default",
    },
}

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "users.authentication.CookieJWTAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "EXCEPTION_HANDLER": "checkout_backend.exceptions.api_exception_handler",
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=int(os.environ.get("JWT_ACCESS_MINUTES", "30"))),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=int(os.environ.get("JWT_REFRESH_DAYS", "7"))),
    "SIGNING_KEY": SECRET_KEY,
    "AUTH_HEADER_TYPES": ("Bearer",),
    "USER_ID_FIELD": "id",
    "USER_ID_CLAIM": "user_id",
    "AUTH_COOKIE": "admin_access_token",
    "AUTH_COOKIE_REFRESH": "admin_refresh_token",
}

# Rate limits are counted in the default cache; share it across workers in production.
RATELIMIT_ENABLE = env_bool("RATELIMIT_ENABLE", default=True)
RATELIMIT_USE_CACHE = "default"

# --- Email ---
EMAIL_BACKEND = os.environ.get("EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend")
EMAIL_HOST = os.environ.get("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.environ.get("EMAIL_PORT", "25"))
EMAIL_HOST_USER = os.environ.get("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.environ.get("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = env_bool("EMAIL_USE_TLS", default=False)
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "orders@example.com")
EMAIL_FROM_NAME = os.environ.get("EMAIL_FROM_NAME", "Kit Orders")

# --- Payment providers ---
STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
STRIPE_CURRENCY = os.environ.get("STRIPE_CURRENCY", "usd")
SPLITIT_API_URL = os.environ.get("SPLITIT_API_URL", "https://web-api-v3.sandbox.splitit.com")
SPLITIT_API_KEY = os.environ.get("SPLITIT_API_KEY", "")
SPLITIT_TIMEOUT = int(os.environ.get("SPLITIT_TIMEOUT", "30"))

# --- Checkout business rules ---
CHECKOUT = {
    "TIMEZONE": os.environ.get("CHECKOUT_TIMEZONE", "America/New_York"),
    "SHIPMENT_TIMEZONE": os.environ.get("CHECKOUT_SHIPMENT_TIMEZONE", "America/Toronto"),
    "CUTOFF_TIME": os.environ.get("CHECKOUT_CUTOFF_TIME", "14:30"),
    "DELIVERY_DATE_MAX_SCAN_DAYS": int(os.environ.get("CHECKOUT_DELIVERY_DATE_MAX_SCAN_DAYS", "366")),
    "ORDER_PO_NUMBER_START": 19480,
    "ORDER_PO_NUMBER_STEP": 3,
    "ITEM_PO_NUMBER_OFFSET": 10000000,
    "CLINIC_CODE": os.environ.get("CHECKOUT_CLINIC_CODE", "main-clinic"),
    "CLINIC_THRESHOLD": int(os.environ.get("CHECKOUT_CLINIC_THRESHOLD", "10")),
    "SUPPORT_EMAIL": os.environ.get("CHECKOUT_SUPPORT_EMAIL", "support@example.com"),
    "CLIENT_SERVICE_INBOX": os.environ.get("CHECKOUT_CLIENT_SERVICE_INBOX", "care@example.com"),
    "COMPANION_DISCOUNT_CODE": os.environ.get("CHECKOUT_COMPANION_DISCOUNT_CODE", "SOMEDISCOUNT"),
    "DELEGATE_SILENT_DISCOUNT_CODE": os.environ.get("CHECKOUT_DELEGATE_SILENT_DISCOUNT_CODE", ""),
    "SHIPPING_HOLD_DISCOUNT_CODE": os.environ.get("CHECKOUT_SHIPPING_HOLD_DISCOUNT_CODE", "MERYLTEST"),
    "TELEHEALTH_PRODUCT_UUID": os.environ.get(
        "CHECKOUT_TELEHEALTH_PRODUCT_UUID", "25965d7b-098b-4254-8135-00992a312fd7"
    ),
}

LOG_LEVEL = os.environ.get("DJANGO_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "orders": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "payments": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "discounts": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "invoices": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "notifications": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "clients": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "checkout_backend": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
