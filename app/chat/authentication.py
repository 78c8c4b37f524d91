"""
Session-id authentication for the chat API.

Clients identify themselves with the opaque session id they registered via
POST /api/v1/chat/users/, sent in the X-Session-ID header. There are no
passwords or tokens; the session id is the credential.

Usage in settings.py:
    REST_FRAMEWORK = {
        "DEFAULT_AUTHENTICATION_CLASSES": [
            "chat.authentication.SessionIdAuthentication",
        ],
    }
"""

from __future__ import annotations

from drf_spectacular.extensions import OpenApiAuthenticationExtension
from rest_framework import authentication, exceptions

from chat.models import ChatUser

SESSION_HEADER = "X-Session-ID"


class SessionIdAuthentication(authentication.BaseAuthentication):
    """
    Authenticate requests by the X-Session-ID header.

    Requests without the header are left anonymous. A header that does not
    match any user fails authentication (the user may have been cleaned up).
    """

    def authenticate(self, request):
        session_id = request.headers.get(SESSION_HEADER, "").strip()
        if not session_id:
            return None

        user = ChatUser.objects.filter(session_id=session_id).first()
        if user is None:
            raise exceptions.AuthenticationFailed("Unknown or expired session")
        return (user, None)

    def authenticate_header(self, request):
        # Makes DRF answer 401 rather than 403 for unauthenticated requests
        return SESSION_HEADER


class SessionIdAuthenticationScheme(OpenApiAuthenticationExtension):
    target_class = "chat.authentication.SessionIdAuthentication"
    name = "SessionId"

    def get_security_definition(self, auto_schema):
        return {
            "type": "apiKey",
            "in": "header",
            "name": SESSION_HEADER,
        }
