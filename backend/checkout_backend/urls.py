"""
URL configuration for checkout_backend project.
"""

from django.http import JsonResponse
from django.urls import path, include


def health_check(request):
    """Simple health check endpoint that doesn't require authentication"""
    return JsonResponse({"status": "ok", "message": "Backend is running"})


urlpatterns = [
    path("api/health/", health_check, name="health_check"),
    path("api/auth/", include("users.urls")),
    path("api/", include("orders.urls")),
]
