"""
Chat application configuration.

This app provides Hushgram's chat system with:
- Session-bound pseudonymous users and presence
- Private and group messages with seen markers
- Group membership with cached member counts
- Cascading cleanup of logged-out and idle users
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"

    def ready(self):
        # Registers the drf-spectacular extension for SessionIdAuthentication
        import chat.authentication  # noqa: F401
