from django.contrib.auth import get_user_model
from django.db import transaction

from checkout_backend.utils.pii import PIIProtection, get_pii_safe_logger
from .models import Client

logger = get_pii_safe_logger(__name__)


class ClientService:
    @staticmethod
    @transaction.atomic
    def first_or_create(payload: dict) -> Client:
        """
        Return the client registered under payload["email"], creating the
        client and its user account when none exists yet. Blank profile
        fields of an existing client are filled in from the payload.
        """
        email = Client.objects.normalize_email(payload.get("email"))
        if not email:
            raise ValueError("A client email is required")

        client = Client.objects.filter(email=email).select_related("user").first()
        if client is not None:
            return ClientService.fill_blank_profile(client, payload)

        User = get_user_model()
        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            user = User.objects.create_user(
                email=email,
                first_name=payload.get("first_name", ""),
                last_name=payload.get("last_name", ""),
            )

        client = Client.objects.create(
            user=user,
            email=email,
            first_name=payload.get("first_name", ""),
            last_name=payload.get("last_name", ""),
            phone=payload.get("phone", "") or "",
            date_of_birth=payload.get("date_of_birth"),
        )
        logger.info(f"Created client {client.pk} for {PIIProtection.mask_email(email)}")
        return client

    PROFILE_FIELDS = ("first_name", "last_name", "phone", "date_of_birth")

    @staticmethod
    def fill_blank_profile(client: Client, payload: dict) -> Client:
        updated = [
            name
            for name in ClientService.PROFILE_FIELDS
            if not getattr(client, name) and payload.get(name)
        ]
        if not updated:
            return client

        for name in updated:
            setattr(client, name, payload[name])
        client.save(update_fields=updated + ["updated_at"])
        logger.info(f"Completed profile of client {client.pk}: {', '.join(updated)}")
        return client
