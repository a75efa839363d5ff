"""
Admin Authentication Tests

These tests verify staff login, token transport and the admin-only
refund endpoint:
- Login returns tokens in the body and as httponly cookies
- The access token works as a Bearer header or as a cookie
- Non-staff users and wrong passwords are rejected
- Repeated login attempts are rate limited
"""
import pytest
import jwt
from django.conf import settings
from unittest.mock import MagicMock, patch

from orders.models import Order
from users.models import User
from users.services import UserService

LOGIN_URL = "/api/auth/login/"


def set_jwt_cookie(client, access_token):
    client.cookies[settings.SIMPLE_JWT["AUTH_COOKIE"]] = access_token


@pytest.mark.django_db
class TestAdminLogin:
    def test_login_sets_cookies(self, api_client, admin_user):
        response = api_client.post(
            LOGIN_URL, {"email": "admin@example.com", "password": "secret"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "admin@example.com"

        access_cookie = response.cookies[settings.SIMPLE_JWT["AUTH_COOKIE"]]
        assert access_cookie.value == response.json()["access"]
        assert access_cookie["httponly"]
        assert access_cookie["path"] == "/api"
        assert settings.SIMPLE_JWT["AUTH_COOKIE_REFRESH"] in response.cookies

    def test_token_identifies_user(self, admin_user):
        tokens = UserService.generate_tokens_for_user(admin_user)

        payload = jwt.decode(tokens["access"], options={"verify_signature": False})

        assert str(payload["user_id"]) == str(admin_user.pk)
        assert "exp" in payload

    def test_wrong_password(self, api_client, admin_user):
        response = api_client.post(
            LOGIN_URL, {"email": "admin@example.com", "password": "nope"}, format="json"
        )

        assert response.status_code == 401
        assert response.json() == {"errors": "Invalid credentials"}

    def test_client_accounts_cannot_log_in(self, api_client):
        User.objects.create_user(email="jane@example.com", password="secret")

        response = api_client.post(
            LOGIN_URL, {"email": "jane@example.com", "password": "secret"}, format="json"
        )

        assert response.status_code == 401

    def test_login_is_rate_limited(self, api_client, admin_user):
        credentials = {"email": "admin@example.com", "password": "nope"}

        statuses = [
            api_client.post(LOGIN_URL, credentials, format="json").status_code
            for _ in range(6)
        ]

        assert statuses[:5] == [401] * 5
        assert statuses[5] == 403

    def test_logout_clears_cookies(self, api_client):
        response = api_client.post("/api/auth/logout/", format="json")

        assert response.status_code == 200
        assert response.cookies[settings.SIMPLE_JWT["AUTH_COOKIE"]].value == ""


@pytest.mark.django_db
class TestTokenTransport:
    def test_bearer_header(self, api_client, admin_user):
        tokens = UserService.generate_tokens_for_user(admin_user)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        response = api_client.get("/api/auth/me/")

        assert response.status_code == 200
        assert response.json()["email"] == "admin@example.com"

    def test_cookie(self, api_client, admin_user):
        set_jwt_cookie(api_client, UserService.generate_tokens_for_user(admin_user)["access"])

        response = api_client.get("/api/auth/me/")

        assert response.status_code == 200

    def test_invalid_token(self, api_client):
        set_jwt_cookie(api_client, "not-a-token")

        response = api_client.get("/api/auth/me/")

        assert response.status_code == 401

    def test_anonymous(self, api_client):
        assert api_client.get("/api/auth/me/").status_code == 401

    def test_refund_with_token(self, api_client, admin_user, paid_order):
        tokens = UserService.generate_tokens_for_user(admin_user)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        with patch("stripe.Refund.create", return_value=MagicMock(id="re_1")):
            response = api_client.post(f"/api/orders/{paid_order.uuid}/refund/", {}, format="json")

        assert response.status_code == 200
        assert response.json()["status"] == Order.OrderStatus.REFUNDED

    def test_refund_rejects_client_token(self, api_client, paid_order):
        tokens = UserService.generate_tokens_for_user(paid_order.user)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        response = api_client.post(f"/api/orders/{paid_order.uuid}/refund/", {}, format="json")

        assert response.status_code == 403
