"""
URL configuration for the messaging backend.

The HTTP surface is small: a health probe, the Django admin
and the SimpleJWT token endpoints clients use to obtain the bearer token
presented on the WebSocket handshake.
"""

from django.contrib import admin
from django.urls import path
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenVerifyView,
)

from chat_backend.views import health

urlpatterns = [
    path("health/", health, name="health"),
    path("admin/", admin.site.urls),

    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/token/verify/", TokenVerifyView.as_view(), name="token_verify"),
]
