"""
Client Service Tests
"""
import pytest
from datetime import date

from clients.models import Client
from clients.services import ClientService
from users.models import User


@pytest.mark.django_db
class TestFirstOrCreate:
    def test_creates_client_and_user(self, client_payload):
        client = ClientService.first_or_create(
            dict(client_payload, date_of_birth=date(1990, 5, 17))
        )

        assert client.email == "jane@example.com"
        assert client.full_name == "Jane Doe"
        assert client.date_of_birth == date(1990, 5, 17)
        assert client.user.email == "jane@example.com"
        assert client.user.role == User.Role.CLIENT
        assert not client.user.has_usable_password()

    def test_returns_existing_client(self, kit_client):
        again = ClientService.first_or_create({"email": "  JANE@example.com "})

        assert again == kit_client
        assert Client.objects.count() == 1

    def test_fills_blank_profile_fields(self):
        existing = ClientService.first_or_create({"email": "sam@example.com"})

        client = ClientService.first_or_create(
            {"email": "sam@example.com", "first_name": "Sam", "phone": "555-0101"}
        )

        assert client == existing
        client.refresh_from_db()
        assert client.first_name == "Sam"
        assert client.phone == "555-0101"

    def test_keeps_existing_profile_fields(self, kit_client):
        client = ClientService.first_or_create(
            {"email": "jane@example.com", "first_name": "Janet", "date_of_birth": date(1990, 5, 17)}
        )

        client.refresh_from_db()
        assert client.first_name == "Jane"
        assert client.date_of_birth == date(1990, 5, 17)

    def test_attaches_existing_user(self):
        user = User.objects.create_user(email="sam@example.com", first_name="Sam")

        client = ClientService.first_or_create({"email": "sam@example.com"})

        assert client.user == user
        assert User.objects.count() == 1

    def test_email_is_required(self):
        with pytest.raises(ValueError):
            ClientService.first_or_create({"first_name": "Nobody"})

    def test_lookup_by_email(self, kit_client):
        assert Client.objects.get_by_email("Jane@Example.com") == kit_client

    def test_str_masks_email(self, kit_client):
        assert str(kit_client) == "ja**@example.com"
