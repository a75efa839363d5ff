from django.contrib.auth import authenticate
from django.db import transaction
from rest_framework_simplejwt.tokens import RefreshToken

from checkout_backend.utils.pii import PIIProtection, get_pii_safe_logger
from .models import User

logger = get_pii_safe_logger(__name__)


class UserService:
    @staticmethod
    @transaction.atomic
    def grant_delegated_access(delegator: User, email: str, first_name: str = "", last_name: str = "") -> User:
        """
        Find or create the user behind `email` and make them an active
        delegate of `delegator`.
        """
        delegate, created = User.objects.get_or_create(
            email=User.objects.normalize_email(email),
            defaults={
                "first_name": first_name or "",
                "last_name": last_name or "",
                "role": User.Role.CLIENT,
            },
        )
        if created:
            delegate.set_unusable_password()

        delegate.delegated_by = delegator
        delegate.is_delegated_active = True
        delegate.save()

        logger.info(
            f"Delegated access granted to {PIIProtection.mask_email(delegate.email)} "
            f"by user {delegator.pk} (created={created})"
        )
        return delegate

    @staticmethod
    def revoke_delegated_access(delegate: User) -> User:
        delegate.is_delegated_active = False
        delegate.save(update_fields=["is_delegated_active", "updated_at"])
        return delegate

    @staticmethod
    def authenticate_admin_user(email: str, password: str):
        """Return the staff user for these credentials, or None."""
        user = authenticate(username=User.objects.normalize_email(email), password=password)
        if user is None or not user.is_staff:
            return None
        return user

    @staticmethod
    def generate_tokens_for_user(user: User) -> dict:
        refresh = RefreshToken.for_user(user)
        return {
            "refresh": str(refresh),
            "access": str(refresh.access_token),
        }
