"""
URL configuration for Hushgram.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/chat/                  - Chat endpoints
        users/                     - Create or resume a session user
        users/current/             - User bound to a session id
        users/online/              - Online user list
        presence/                  - Heartbeat
        logout/                    - Log out and schedule cleanup
        messages/                  - Send message
        messages/private/{id}/     - Private history
        messages/seen/             - Mark a chat seen
        groups/                    - Group list
        groups/{id}/messages/      - Group history
        groups/{id}/join/          - Join group
        groups/{id}/leave/         - Leave group
        active-chat/               - Set/clear active chat
        typing/                    - Typing indicators

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Hushgram Admin"
admin.site.site_title = "Hushgram"
admin.site.index_title = "Chat administration"
