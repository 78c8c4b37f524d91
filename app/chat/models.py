"""
Chat system models.

This module defines the data models for Hushgram:
- Pseudonymous users tied to an opaque session id, with presence fields
- Private (1:1) and group messages with a "seen" marker
- Group memberships with a denormalized member count per group
- Ephemeral per-user state: active chat markers and typing indicators

Models:
    ChatUser: Display name bound to a session, plus online flag and last_seen
    Group: Named group chat with a cached member_count
    GroupMembership: One row per (user, group) pair
    Message: Private or group message, exactly one target set
    ActiveChat: Which chat a user currently has open (per device)
    TypingIndicator: Whether a user is typing in a chat

Design Decisions:
    - Every row a user creates is owned by that user. Owner references use
      PROTECT so a user row cannot be deleted while owned rows remain; the
      cascading cleanup in chat.services.UserCleanupService removes them first.
    - Message.recipient carries no database constraint. Deleting a user only
      purges messages they sent, so messages addressed to them survive with a
      dangling recipient id. Serializers render such ids as "Deleted user".
    - Group.member_count is a cache of live membership rows. It is adjusted on
      join/leave/cleanup and can be recomputed with
      GroupService.recalculate_member_count().
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q

from core.models import BaseModel


class ChatUser(BaseModel):
    """
    A chat participant identified by an opaque session id.

    Usernames are not globally unique: no two users flagged online may share
    a username (a partial unique constraint on is_online=True). A session id
    maps to at most one user.

    Fields:
        username: Display name shown to other users
        session_id: Opaque client session identifier (unique)
        is_online: Online flag set by heartbeats; staleness is resolved at
                   read time against last_seen
        last_seen: Timestamp of the last heartbeat or resume

    Relationships:
        sent_messages: Messages sent by this user
        memberships: GroupMembership rows
        active_chats: ActiveChat markers
        typing_indicators: TypingIndicator rows
    """

    username = models.CharField(
        max_length=32,
        db_index=True,
        help_text="Display name (unique only among online users)",
    )

    session_id = models.CharField(
        max_length=128,
        unique=True,
        help_text="Opaque session identifier supplied by the client",
    )

    is_online = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Online flag maintained by heartbeats",
    )

    last_seen = models.DateTimeField(
        db_index=True,
        help_text="Timestamp of the most recent heartbeat",
    )

    class Meta:
        db_table = "chat_user"
        ordering = ["username", "id"]
        indexes = [
            models.Index(
                fields=["is_online", "last_seen"],
                name="chat_user_online_seen_idx",
            ),
        ]
        constraints = [
            # UNIQUE(username) WHERE is_online = TRUE
            models.UniqueConstraint(
                fields=["username"],
                condition=models.Q(is_online=True),
                name="chat_user_unique_online_username",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"{self.username} ({self.pk})"

    # DRF treats any object with is_authenticated=True as an authenticated user
    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_anonymous(self) -> bool:
        return False


class Group(BaseModel):
    """
    A named group chat.

    Groups are created by operators (admin); users join and leave them.

    Fields:
        name: Unique group name
        member_count: Cached number of GroupMembership rows (never negative)
    """

    name = models.CharField(
        max_length=64,
        unique=True,
        help_text="Group name",
    )

    member_count = models.PositiveIntegerField(
        default=0,
        help_text="Cached count of memberships (recomputed by the audit task)",
    )

    class Meta:
        db_table = "chat_group"
        ordering = ["name"]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"Group: {self.name}"


class GroupMembership(BaseModel):
    """
    Membership of a user in a group.

    Each (user, group) pair appears at most once. Rows are deleted on leave
    and by the user cleanup workflow, which also decrements the group's
    member_count.
    """

    user = models.ForeignKey(
        ChatUser,
        on_delete=models.PROTECT,
        related_name="memberships",
        help_text="Member",
    )

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name="memberships",
        help_text="Group joined",
    )

    class Meta:
        db_table = "chat_group_membership"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "group"],
                name="unique_group_membership",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"Membership(user={self.user_id}, group={self.group_id})"


class Message(BaseModel):
    """
    A chat message.

    A message is either private (recipient set) or a group message (group
    set), never both. Messages are immutable apart from the seen marker and
    are only removed when their sender is cleaned up.

    Fields:
        sender: Author of the message
        recipient: Addressee of a private message (may dangle after cleanup)
        group: Target group of a group message
        content: Message text
        is_seen: Whether the addressee has seen the message
        seen_at: When the message was marked seen
    """

    sender = models.ForeignKey(
        ChatUser,
        on_delete=models.PROTECT,
        related_name="sent_messages",
        help_text="User who sent the message",
    )

    recipient = models.ForeignKey(
        ChatUser,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name="+",
        help_text="Recipient of a private message (kept after recipient cleanup)",
    )

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="messages",
        help_text="Target group of a group message",
    )

    content = models.TextField(
        help_text="Message text",
    )

    is_seen = models.BooleanField(
        default=False,
        help_text="Whether the message has been seen",
    )

    seen_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the message was marked seen",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["recipient", "sender", "created_at"],
                name="chat_msg_private_idx",
            ),
            models.Index(
                fields=["group", "created_at"],
                name="chat_msg_group_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(recipient__isnull=False, group__isnull=True)
                    | Q(recipient__isnull=True, group__isnull=False)
                ),
                name="message_exactly_one_target",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        if self.group_id:
            return f"Message({self.pk}) to group {self.group_id}"
        return f"Message({self.pk}) to user {self.recipient_id}"

    @property
    def is_group_message(self) -> bool:
        """Check if this message was sent to a group."""
        return self.group_id is not None


class ActiveChat(BaseModel):
    """
    Marker for the chat a user currently has open.

    One marker per (user, device). device_id is an opaque client value and
    defaults to the empty string for single-device clients.
    """

    user = models.ForeignKey(
        ChatUser,
        on_delete=models.PROTECT,
        related_name="active_chats",
        help_text="User viewing the chat",
    )

    chat_id = models.CharField(
        max_length=64,
        help_text="Chat identifier (private:<a>:<b> or group:<id>)",
    )

    device_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Opaque client device identifier",
    )

    class Meta:
        db_table = "chat_active_chat"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "device_id"],
                name="unique_active_chat_per_device",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"ActiveChat(user={self.user_id}, chat={self.chat_id})"


class TypingIndicator(BaseModel):
    """
    Typing state of a user in a chat.

    Conceptually one row per (user, chat). Rows are refreshed on keystroke
    activity; updated_at is the freshness timestamp. Stale rows are ignored by
    readers and removed by the typing expiry task.
    """

    user = models.ForeignKey(
        ChatUser,
        on_delete=models.PROTECT,
        related_name="typing_indicators",
        help_text="User typing",
    )

    chat_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Chat identifier (private:<a>:<b> or group:<id>)",
    )

    is_typing = models.BooleanField(
        default=False,
        help_text="Whether the user is currently typing",
    )

    class Meta:
        db_table = "chat_typing_indicator"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "chat_id"],
                name="unique_typing_indicator",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"Typing(user={self.user_id}, chat={self.chat_id}, {self.is_typing})"
