from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from checkout_backend.utils.pii import PIIProtection, get_pii_safe_logger
from .auth_cookie_service import AuthCookieService
from .serializers import AdminLoginSerializer, UserSerializer
from .services import UserService

logger = get_pii_safe_logger(__name__)


@method_decorator(
    ratelimit(key="ip", rate="5/m", method="POST", block=True), name="post"
)
class AdminLoginView(APIView):
    """
    Email and password login for staff. Returns the tokens in the body and
    as httponly cookies scoped to /api.
    """

    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = AdminLoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = UserService.authenticate_admin_user(
            email=serializer.validated_data["email"],
            password=serializer.validated_data["password"],
        )
        if user is None:
            logger.warning(
                f"Failed admin login for {PIIProtection.mask_email(serializer.validated_data['email'])}"
            )
            return Response(
                {"errors": "Invalid credentials"},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        tokens = UserService.generate_tokens_for_user(user)
        response = Response({"user": UserSerializer(user).data, **tokens})
        AuthCookieService.set_admin_auth_cookies(response, tokens["access"], tokens["refresh"])
        return response


class LogoutView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        response = Response({"detail": "Successfully logged out."}, status=status.HTTP_200_OK)
        AuthCookieService.clear_admin_auth_cookies(response)
        return response


class CurrentUserView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)
