"""
Serializers for chat API.

This module provides serializers for the chat system:
- User serializers (register/resume, public profile)
- Presence and ephemeral state payloads
- Message serializers (read, create)
- Group serializers

Serializer Hierarchy:
    ChatUserSerializer: Public view of a user
    CurrentUserSerializer: The caller's own user, including session id
    UserCreateSerializer: Register or resume a session

    HeartbeatSerializer: Presence heartbeat payload

    MessageSerializer: Message with usernames resolved
    MessageCreateSerializer: Send new message
    MarkSeenSerializer: Mark a chat seen

    GroupSerializer: Group with cached member count

    ActiveChatSerializer / TypingUpdateSerializer: Ephemeral state

Design Decisions:
    - Read and write serializers are separate for clarity
    - Usernames on messages come from a lookup passed in serializer
      context ("usernames"); ids missing from it render as "Deleted user"
"""

from __future__ import annotations

from rest_framework import serializers

from chat.constants import MESSAGE_CONFIG, PRESENCE_CONFIG
from chat.models import ActiveChat, ChatUser, Group, Message


# =============================================================================
# User Serializers
# =============================================================================


class ChatUserSerializer(serializers.ModelSerializer):
    """Public user representation used in lists."""

    class Meta:
        model = ChatUser
        fields = ["id", "username", "is_online", "last_seen"]
        read_only_fields = fields


class CurrentUserSerializer(serializers.ModelSerializer):
    """The caller's own user, including the session id."""

    class Meta:
        model = ChatUser
        fields = ["id", "username", "session_id", "is_online", "last_seen", "created_at"]
        read_only_fields = fields


class UserCreateSerializer(serializers.Serializer):
    """
    Register a username for a session, or resume the session's user.

    Length and blank checks happen in UserDirectoryService so the service
    reports INVALID_USERNAME consistently.
    """

    username = serializers.CharField(
        max_length=PRESENCE_CONFIG.MAX_USERNAME_LENGTH * 4,
        allow_blank=True,
        trim_whitespace=False,
        help_text="Display name",
    )
    session_id = serializers.CharField(
        max_length=128,
        help_text="Opaque client session identifier",
    )


# =============================================================================
# Presence Serializers
# =============================================================================


class HeartbeatSerializer(serializers.Serializer):
    """Heartbeat payload."""

    is_online = serializers.BooleanField(
        default=True,
        help_text="Whether the client is in the foreground",
    )


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """
    Full message representation.

    Expects a "usernames" dict (user id -> username) in context, as built by
    MessageService.resolve_usernames().
    """

    sender_username = serializers.SerializerMethodField()
    recipient_username = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = [
            "id",
            "sender_id",
            "sender_username",
            "recipient_id",
            "recipient_username",
            "group_id",
            "content",
            "is_seen",
            "seen_at",
            "created_at",
        ]
        read_only_fields = fields

    def _username(self, user_id: int | None) -> str | None:
        if user_id is None:
            return None
        usernames = self.context.get("usernames", {})
        return usernames.get(user_id, MESSAGE_CONFIG.DELETED_USER_LABEL)

    def get_sender_username(self, obj: Message) -> str:
        return self._username(obj.sender_id)

    def get_recipient_username(self, obj: Message) -> str | None:
        return self._username(obj.recipient_id)


class MessageCreateSerializer(serializers.Serializer):
    """
    Send a message.

    Exactly one of recipient_id or group_id must be given; the service
    enforces this and the content limits.
    """

    content = serializers.CharField(
        allow_blank=True,
        trim_whitespace=False,
        help_text=f"Message text (max {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters)",
    )
    recipient_id = serializers.IntegerField(
        required=False,
        allow_null=True,
        help_text="Recipient user id (private message)",
    )
    group_id = serializers.IntegerField(
        required=False,
        allow_null=True,
        help_text="Target group id (group message)",
    )


class MarkSeenSerializer(serializers.Serializer):
    chat_id = serializers.CharField(
        max_length=64,
        help_text="private:<a>:<b> or group:<id>",
    )


class MarkSeenResponseSerializer(serializers.Serializer):
    updated = serializers.IntegerField()


# =============================================================================
# Group Serializers
# =============================================================================


class GroupSerializer(serializers.ModelSerializer):
    class Meta:
        model = Group
        fields = ["id", "name", "member_count", "created_at"]
        read_only_fields = fields


# =============================================================================
# Ephemeral State Serializers
# =============================================================================


class ActiveChatSerializer(serializers.ModelSerializer):
    chat_id = serializers.CharField(max_length=64)
    device_id = serializers.CharField(
        max_length=64,
        required=False,
        allow_blank=True,
        default="",
    )

    class Meta:
        model = ActiveChat
        fields = ["chat_id", "device_id", "updated_at"]
        read_only_fields = ["updated_at"]


class ActiveChatClearSerializer(serializers.Serializer):
    device_id = serializers.CharField(
        max_length=64,
        required=False,
        allow_blank=True,
        default="",
    )


class TypingUpdateSerializer(serializers.Serializer):
    chat_id = serializers.CharField(max_length=64)
    is_typing = serializers.BooleanField()
