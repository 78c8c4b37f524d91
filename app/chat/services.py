"""
Chat system service layer.

This module provides the business logic for Hushgram, encapsulating all
operations on users, presence, messages, groups and ephemeral chat state.

Services:
    UserDirectoryService: Session-bound user creation, resume and lookup
    PresenceService: Online list, heartbeats and idle detection
    MessageService: Send, list and mark-seen for private and group messages
    GroupService: Join/leave and member count maintenance
    ActiveChatService: Which chat a user has open
    TypingService: Typing indicators and their expiry
    UserCleanupService: Cascading deletion of a user and everything they own

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Unexpected failures raise exceptions
    - Deletes are delete-if-present; repeating an operation is a no-op
    - Long-running cleanup is handed to Celery via chat.dispatch.enqueue()

Usage:
    from chat.services import MessageService, UserDirectoryService

    result = UserDirectoryService.create_or_resume("alice", session_id)
    if result.success:
        user = result.data

    result = MessageService.send_message(
        sender=user,
        content="Hello!",
        recipient_id=other_user.id,
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import IntegrityError, models
from django.db.models import Count, F, Q
from django.db.models.functions import Greatest
from django.utils import timezone

from core.services import BaseService, ServiceResult

from chat.constants import (
    CHAT_ID,
    CLEANUP_TASKS,
    MESSAGE_CONFIG,
    PRESENCE_CONFIG,
    idle_threshold,
    online_window,
    typing_ttl,
)
from chat.dispatch import enqueue
from chat.models import (
    ActiveChat,
    ChatUser,
    Group,
    GroupMembership,
    Message,
    TypingIndicator,
)

if TYPE_CHECKING:
    from datetime import datetime

    from django.db.models import QuerySet


# =============================================================================
# Chat Identifiers
# =============================================================================


@dataclass(frozen=True)
class ChatRef:
    """
    Parsed chat identifier.

    Private chats are keyed by the two user ids in ascending order
    ("private:3:7"); group chats by the group id ("group:12").
    """

    kind: str
    user_ids: tuple[int, int] | None = None
    group_id: int | None = None

    @classmethod
    def for_private(cls, user_a: int, user_b: int) -> ChatRef:
        low, high = sorted((int(user_a), int(user_b)))
        return cls(kind=CHAT_ID.PRIVATE_PREFIX, user_ids=(low, high))

    @classmethod
    def for_group(cls, group_id: int) -> ChatRef:
        return cls(kind=CHAT_ID.GROUP_PREFIX, group_id=int(group_id))

    @property
    def is_group(self) -> bool:
        return self.kind == CHAT_ID.GROUP_PREFIX

    def encode(self) -> str:
        """Encode to the string form used by clients and ephemeral rows."""
        sep = CHAT_ID.SEPARATOR
        if self.is_group:
            return f"{self.kind}{sep}{self.group_id}"
        return f"{self.kind}{sep}{self.user_ids[0]}{sep}{self.user_ids[1]}"

    @classmethod
    def decode(cls, value: str) -> ChatRef:
        """
        Parse a chat identifier string.

        Raises:
            ValueError: If the identifier is malformed
        """
        parts = (value or "").split(CHAT_ID.SEPARATOR)
        if parts[0] == CHAT_ID.GROUP_PREFIX and len(parts) == 2:
            return cls.for_group(int(parts[1]))
        if parts[0] == CHAT_ID.PRIVATE_PREFIX and len(parts) == 3:
            ref = cls.for_private(int(parts[1]), int(parts[2]))
            if ref.user_ids[0] == ref.user_ids[1]:
                raise ValueError(f"Private chat needs two distinct users: {value!r}")
            return ref
        raise ValueError(f"Invalid chat id: {value!r}")

    def involves(self, user_id: int) -> bool:
        """Check if a private chat includes the given user."""
        return not self.is_group and user_id in self.user_ids

    def other_user_id(self, user_id: int) -> int:
        """Return the counterpart of user_id in a private chat."""
        low, high = self.user_ids
        return high if user_id == low else low


def _decrement_member_count(group_id: int) -> None:
    """Decrement a group's member_count by one, never below zero."""
    Group.objects.filter(pk=group_id).update(
        member_count=Greatest(
            F("member_count") - 1,
            0,
            output_field=models.IntegerField(),
        ),
        updated_at=timezone.now(),
    )


# =============================================================================
# User Directory
# =============================================================================


class UserDirectoryService(BaseService):
    """
    Service for session-bound user records.

    Methods:
        create_or_resume: Resume the session's user or create a new one
        get_current_user: Look up the user bound to a session
    """

    @classmethod
    def _resume(cls, session_id: str, username: str, now: datetime) -> ChatUser | None:
        """
        Bring the session's user back online under username.

        Raises:
            IntegrityError: Another online user holds username
        """
        user = ChatUser.objects.filter(session_id=session_id).first()
        if user is None:
            return None

        user.username = username
        user.is_online = True
        user.last_seen = now
        with cls.atomic():
            user.save(update_fields=["username", "is_online", "last_seen", "updated_at"])

        cls.get_logger().info(f"Resumed user {user.id} for existing session")
        return user

    @classmethod
    def _username_held(cls, username: str) -> bool:
        return ChatUser.objects.filter(username=username, is_online=True).exists()

    @classmethod
    def _username_taken(cls, username: str) -> ServiceResult[ChatUser]:
        cls.get_logger().info(f"Rejected username {username!r}: held by an online user")
        return ServiceResult.failure(
            "Username is already taken by an online user",
            error_code="USERNAME_TAKEN",
        )

    @classmethod
    def create_or_resume(cls, username: str, session_id: str) -> ServiceResult[ChatUser]:
        """
        Resume the user bound to session_id, or create one.

        No two online users may share a username. The check below gives the
        common case a clean error; the chat_user_unique_online_username
        constraint catches concurrent claims that slip past it. A resumed
        session keeps its user id and takes the new name.

        Args:
            username: Requested display name
            session_id: Opaque client session identifier

        Returns:
            ServiceResult with the ChatUser

        Error codes:
            INVALID_USERNAME: Empty or too long after stripping
            INVALID_SESSION: Empty session id
            USERNAME_TAKEN: Another online user holds this username
        """
        username = (username or "").strip()
        if not username or len(username) > PRESENCE_CONFIG.MAX_USERNAME_LENGTH:
            return ServiceResult.failure(
                f"Username must be 1-{PRESENCE_CONFIG.MAX_USERNAME_LENGTH} characters",
                error_code="INVALID_USERNAME",
            )

        session_id = (session_id or "").strip()
        if not session_id:
            return ServiceResult.failure(
                "Session id is required",
                error_code="INVALID_SESSION",
            )

        now = timezone.now()

        try:
            user = cls._resume(session_id, username, now)
        except IntegrityError:
            return cls._username_taken(username)
        if user is not None:
            return ServiceResult.success(user)

        if cls._username_held(username):
            return cls._username_taken(username)

        try:
            with cls.atomic():
                user = ChatUser.objects.create(
                    username=username,
                    session_id=session_id,
                    is_online=True,
                    last_seen=now,
                )
        except IntegrityError:
            # Either this session or this username was claimed concurrently
            try:
                user = cls._resume(session_id, username, now)
            except IntegrityError:
                user = None
            if user is None:
                return cls._username_taken(username)
            return ServiceResult.success(user)

        cls.get_logger().info(f"Created user {user.id} ({username!r})")
        return ServiceResult.success(user)

    @classmethod
    def get_current_user(cls, session_id: str) -> ChatUser | None:
        """Return the user bound to session_id, or None. No side effects."""
        if not session_id:
            return None
        return ChatUser.objects.filter(session_id=session_id).first()


# =============================================================================
# Presence
# =============================================================================


class PresenceService(BaseService):
    """
    Presence derived from the recency of last_seen.

    There is no background transition of the online flag: a user flagged
    online drops out of the online list once the presence window passes
    without a heartbeat. Deletion eligibility uses a separate, longer idle
    threshold.

    Methods:
        online_users: Users flagged online and seen within the window
        heartbeat: Update the online flag and refresh last_seen
        find_idle_user_ids: Users not seen within the idle threshold
    """

    @classmethod
    def online_users(cls, now: datetime | None = None) -> QuerySet[ChatUser]:
        """Return users flagged online whose last_seen is inside the window."""
        now = now or timezone.now()
        return ChatUser.objects.filter(
            is_online=True,
            last_seen__gt=now - online_window(),
        ).order_by("username", "id")

    @classmethod
    def heartbeat(cls, user_id: int, is_online: bool) -> ServiceResult[ChatUser]:
        """
        Set the online flag and refresh last_seen.

        Error codes:
            USER_NOT_FOUND: The user no longer exists
            USERNAME_TAKEN: Coming back online while another online user
                            holds this user's name
        """
        now = timezone.now()
        try:
            with cls.atomic():
                updated = ChatUser.objects.filter(pk=user_id).update(
                    is_online=is_online,
                    last_seen=now,
                    updated_at=now,
                )
        except IntegrityError:
            return ServiceResult.failure(
                "Username is already taken by an online user",
                error_code="USERNAME_TAKEN",
            )

        user = ChatUser.objects.filter(pk=user_id).first() if updated else None
        if user is None:
            return ServiceResult.failure(
                "User not found",
                error_code="USER_NOT_FOUND",
            )

        cls.get_logger().debug(f"Heartbeat for user {user_id} (online={is_online})")
        return ServiceResult.success(user)

    @classmethod
    def find_idle_user_ids(cls, now: datetime | None = None) -> list[int]:
        """
        Return ids of users whose last_seen is older than the idle threshold.

        The online flag is ignored. This is a read-only scan.
        """
        now = now or timezone.now()
        return list(
            ChatUser.objects.filter(last_seen__lt=now - idle_threshold())
            .order_by("last_seen")
            .values_list("id", flat=True)
        )


# =============================================================================
# Messages
# =============================================================================


class MessageService(BaseService):
    """
    Service for message operations.

    Methods:
        send_message: Send a private or group message
        get_private_messages: Conversation between two users
        get_group_messages: Messages in a group
        mark_messages_seen: Mark a chat's incoming messages as seen
        resolve_usernames: Map user ids on messages to display names
    """

    @classmethod
    def send_message(
        cls,
        sender: ChatUser,
        content: str,
        recipient_id: int | None = None,
        group_id: int | None = None,
    ) -> ServiceResult[Message]:
        """
        Send a message to a user or a group.

        Sending also clears the sender's typing indicator in that chat.

        Error codes:
            INVALID_TARGET: Not exactly one of recipient_id / group_id
            EMPTY_CONTENT: Content is blank
            CONTENT_TOO_LONG: Content exceeds MESSAGE_CONFIG.MAX_CONTENT_LENGTH
            SAME_USER: Private message to yourself
            RECIPIENT_NOT_FOUND: Recipient does not exist
            GROUP_NOT_FOUND: Group does not exist
            NOT_GROUP_MEMBER: Sender is not in the group
        """
        if (recipient_id is None) == (group_id is None):
            return ServiceResult.failure(
                "Provide exactly one of recipient_id or group_id",
                error_code="INVALID_TARGET",
            )

        content = content.strip() if content else ""
        if len(content) < MESSAGE_CONFIG.MIN_CONTENT_LENGTH:
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code="EMPTY_CONTENT",
            )
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message content exceeds {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code="CONTENT_TOO_LONG",
            )

        if recipient_id is not None:
            if recipient_id == sender.id:
                return ServiceResult.failure(
                    "Cannot send a private message to yourself",
                    error_code="SAME_USER",
                )
            if not ChatUser.objects.filter(pk=recipient_id).exists():
                return ServiceResult.failure(
                    "Recipient not found",
                    error_code="RECIPIENT_NOT_FOUND",
                )
            chat_ref = ChatRef.for_private(sender.id, recipient_id)
        else:
            if not Group.objects.filter(pk=group_id).exists():
                return ServiceResult.failure(
                    "Group not found",
                    error_code="GROUP_NOT_FOUND",
                )
            if not GroupMembership.objects.filter(user=sender, group_id=group_id).exists():
                return ServiceResult.failure(
                    "You are not a member of this group",
                    error_code="NOT_GROUP_MEMBER",
                )
            chat_ref = ChatRef.for_group(group_id)

        with cls.atomic():
            message = Message.objects.create(
                sender=sender,
                recipient_id=recipient_id,
                group_id=group_id,
                content=content,
            )
            TypingIndicator.objects.filter(
                user=sender,
                chat_id=chat_ref.encode(),
            ).update(is_typing=False, updated_at=timezone.now())

        cls.get_logger().debug(
            f"User {sender.id} sent message {message.id} to {chat_ref.encode()}"
        )
        return ServiceResult.success(message)

    @classmethod
    def get_private_messages(cls, user_id: int, other_user_id: int) -> QuerySet[Message]:
        """Return messages between two users in insertion order."""
        return Message.objects.filter(
            Q(sender_id=user_id, recipient_id=other_user_id)
            | Q(sender_id=other_user_id, recipient_id=user_id)
        ).order_by("created_at", "id")

    @classmethod
    def get_group_messages(cls, group_id: int) -> QuerySet[Message]:
        """Return a group's messages in insertion order."""
        return Message.objects.filter(group_id=group_id).order_by("created_at", "id")

    @classmethod
    def mark_messages_seen(cls, user: ChatUser, chat_id: str) -> ServiceResult[int]:
        """
        Mark the incoming messages of a chat as seen by user.

        Private chat: unseen messages the other party sent to user.
        Group chat: unseen group messages not sent by user.

        Returns:
            ServiceResult with the number of messages updated

        Error codes:
            INVALID_CHAT_ID: Malformed chat identifier
            NOT_CHAT_PARTICIPANT: user is not part of the private chat
            NOT_GROUP_MEMBER: user is not in the group
        """
        try:
            chat_ref = ChatRef.decode(chat_id)
        except ValueError:
            return ServiceResult.failure(
                "Invalid chat id",
                error_code="INVALID_CHAT_ID",
            )

        if chat_ref.is_group:
            if not GroupMembership.objects.filter(
                user=user, group_id=chat_ref.group_id
            ).exists():
                return ServiceResult.failure(
                    "You are not a member of this group",
                    error_code="NOT_GROUP_MEMBER",
                )
            unseen = Message.objects.filter(
                group_id=chat_ref.group_id,
                is_seen=False,
            ).exclude(sender_id=user.id)
        else:
            if not chat_ref.involves(user.id):
                return ServiceResult.failure(
                    "You are not part of this chat",
                    error_code="NOT_CHAT_PARTICIPANT",
                )
            unseen = Message.objects.filter(
                sender_id=chat_ref.other_user_id(user.id),
                recipient_id=user.id,
                is_seen=False,
            )

        now = timezone.now()
        updated = unseen.update(is_seen=True, seen_at=now, updated_at=now)

        cls.get_logger().debug(f"User {user.id} marked {updated} messages seen in {chat_id}")
        return ServiceResult.success(updated)

    @classmethod
    def resolve_usernames(cls, messages) -> dict[int, str]:
        """
        Map every sender/recipient id on messages to a username.

        Ids of users that no longer exist are absent from the result; callers
        render them as MESSAGE_CONFIG.DELETED_USER_LABEL.
        """
        user_ids = set()
        for message in messages:
            user_ids.add(message.sender_id)
            if message.recipient_id is not None:
                user_ids.add(message.recipient_id)
        return dict(
            ChatUser.objects.filter(pk__in=user_ids).values_list("id", "username")
        )


# =============================================================================
# Groups
# =============================================================================


class GroupService(BaseService):
    """
    Service for group membership and the cached member count.

    Methods:
        list_groups: All groups
        join_group: Add a membership and increment member_count
        leave_group: Remove a membership and decrement member_count (floor 0)
        recalculate_member_count: Recompute one group's count from memberships
        reconcile_member_counts: Recompute all groups, report drift
    """

    @classmethod
    def list_groups(cls) -> QuerySet[Group]:
        return Group.objects.order_by("name")

    @classmethod
    def join_group(cls, user: ChatUser, group_id: int) -> ServiceResult[GroupMembership]:
        """
        Join a group.

        Error codes:
            GROUP_NOT_FOUND: Group does not exist
            ALREADY_MEMBER: User is already in the group
        """
        if not Group.objects.filter(pk=group_id).exists():
            return ServiceResult.failure(
                "Group not found",
                error_code="GROUP_NOT_FOUND",
            )

        try:
            with cls.atomic():
                membership = GroupMembership.objects.create(user=user, group_id=group_id)
                Group.objects.filter(pk=group_id).update(
                    member_count=F("member_count") + 1,
                    updated_at=timezone.now(),
                )
        except IntegrityError:
            return ServiceResult.failure(
                "You are already a member of this group",
                error_code="ALREADY_MEMBER",
            )

        cls.get_logger().info(f"User {user.id} joined group {group_id}")
        return ServiceResult.success(membership)

    @classmethod
    def leave_group(cls, user: ChatUser, group_id: int) -> ServiceResult[None]:
        """
        Leave a group.

        Error codes:
            NOT_GROUP_MEMBER: User is not in the group
        """
        with cls.atomic():
            deleted, _ = GroupMembership.objects.filter(
                user=user,
                group_id=group_id,
            ).delete()
            if deleted:
                _decrement_member_count(group_id)

        if not deleted:
            return ServiceResult.failure(
                "You are not a member of this group",
                error_code="NOT_GROUP_MEMBER",
            )

        cls.get_logger().info(f"User {user.id} left group {group_id}")
        return ServiceResult.success(None)

    @classmethod
    def recalculate_member_count(cls, group: Group) -> bool:
        """
        Recompute group.member_count from live memberships.

        The stored count is re-read first, so a stale instance is safe to pass.

        Returns:
            True if the stored count had drifted and was corrected
        """
        group.refresh_from_db(fields=["member_count"])
        live_count = GroupMembership.objects.filter(group=group).count()
        if group.member_count == live_count:
            return False

        cls.get_logger().warning(
            f"Group {group.id} member_count drift: stored {group.member_count}, "
            f"actual {live_count}",
            extra={
                "group_id": group.id,
                "stored_count": group.member_count,
                "actual_count": live_count,
            },
        )
        Group.objects.filter(pk=group.pk).update(
            member_count=live_count,
            updated_at=timezone.now(),
        )
        group.member_count = live_count
        return True

    @classmethod
    def reconcile_member_counts(cls) -> list[dict]:
        """
        Audit every group's member_count against its memberships.

        Returns:
            List of corrections: {"group_id", "stored_count", "actual_count"}
        """
        corrections = []
        groups = Group.objects.annotate(live_count=Count("memberships")).order_by("id")
        for group in groups:
            if group.member_count == group.live_count:
                continue

            corrections.append(
                {
                    "group_id": group.id,
                    "stored_count": group.member_count,
                    "actual_count": group.live_count,
                }
            )
            cls.recalculate_member_count(group)

        cls.get_logger().info(
            f"Reconciled member counts: {len(corrections)} groups corrected",
            extra={"corrected_count": len(corrections)},
        )
        return corrections


# =============================================================================
# Ephemeral State
# =============================================================================


class ActiveChatService(BaseService):
    """Service for active chat markers."""

    @classmethod
    def set_active_chat(
        cls,
        user: ChatUser,
        chat_id: str,
        device_id: str = "",
    ) -> ServiceResult[ActiveChat]:
        """
        Record the chat user has open on device_id.

        Error codes:
            INVALID_CHAT_ID: Malformed chat identifier
        """
        try:
            chat_ref = ChatRef.decode(chat_id)
        except ValueError:
            return ServiceResult.failure(
                "Invalid chat id",
                error_code="INVALID_CHAT_ID",
            )

        active_chat, _ = ActiveChat.objects.update_or_create(
            user=user,
            device_id=device_id,
            defaults={"chat_id": chat_ref.encode()},
        )
        return ServiceResult.success(active_chat)

    @classmethod
    def clear_active_chat(cls, user: ChatUser, device_id: str = "") -> ServiceResult[int]:
        deleted, _ = ActiveChat.objects.filter(user=user, device_id=device_id).delete()
        return ServiceResult.success(deleted)


class TypingService(BaseService):
    """
    Service for typing indicators.

    Methods:
        update_typing_indicator: Upsert the (user, chat) indicator
        get_typing_users: Users currently typing in a chat
        expire_stale_indicators: Delete indicators older than the typing TTL
    """

    @classmethod
    def update_typing_indicator(
        cls,
        user: ChatUser,
        chat_id: str,
        is_typing: bool,
    ) -> ServiceResult[TypingIndicator]:
        """
        Record whether user is typing in chat_id.

        Error codes:
            INVALID_CHAT_ID: Malformed chat identifier
        """
        try:
            chat_ref = ChatRef.decode(chat_id)
        except ValueError:
            return ServiceResult.failure(
                "Invalid chat id",
                error_code="INVALID_CHAT_ID",
            )

        indicator, _ = TypingIndicator.objects.update_or_create(
            user=user,
            chat_id=chat_ref.encode(),
            defaults={"is_typing": is_typing},
        )
        return ServiceResult.success(indicator)

    @classmethod
    def get_typing_users(
        cls,
        chat_id: str,
        exclude_user_id: int | None = None,
        now: datetime | None = None,
    ) -> QuerySet[ChatUser]:
        """
        Return users typing in chat_id whose indicator is still fresh.

        chat_id is normalised the same way writes store it; a malformed id
        matches nobody.
        """
        try:
            chat_ref = ChatRef.decode(chat_id)
        except ValueError:
            return ChatUser.objects.none()

        now = now or timezone.now()
        users = ChatUser.objects.filter(
            typing_indicators__chat_id=chat_ref.encode(),
            typing_indicators__is_typing=True,
            typing_indicators__updated_at__gt=now - typing_ttl(),
        )
        if exclude_user_id is not None:
            users = users.exclude(pk=exclude_user_id)
        return users.order_by("username", "id")

    @classmethod
    def expire_stale_indicators(cls, now: datetime | None = None) -> int:
        """Delete indicators not refreshed within the typing TTL."""
        now = now or timezone.now()
        deleted, _ = TypingIndicator.objects.filter(
            updated_at__lt=now - typing_ttl(),
        ).delete()
        if deleted:
            cls.get_logger().info(f"Expired {deleted} stale typing indicators")
        return deleted


# =============================================================================
# Cascading Cleanup
# =============================================================================


class UserCleanupService(BaseService):
    """
    Cascading deletion of a user and every row they own.

    The workflow runs in five stages, in order:
        1. messages sent by the user (private and group)
        2. group memberships, decrementing each group's member_count
        3. active chat markers
        4. typing indicators
        5. the user row itself

    Each stage commits on its own; there is no transaction spanning the whole
    workflow. The user row goes last so a crashed run can be resumed by user
    id. Every delete is delete-if-present and every decrement is floored, so
    re-running the workflow (or two runs racing) only produces no-ops.

    Messages addressed to the user by others are kept; their recipient id
    dangles once the user row is gone.

    Trigger paths:
        logout: user-initiated, enqueued and returned immediately
        sweep_idle_users: periodic, one enqueue per idle user
    """

    @classmethod
    def delete_user_and_data(cls, user_id: int) -> ServiceResult[dict]:
        """
        Delete user_id and all data it owns.

        Database errors propagate so the task runner can retry.

        Returns:
            ServiceResult with per-stage deletion counts
        """
        logger = cls.get_logger()

        deleted_messages, _ = Message.objects.filter(sender_id=user_id).delete()
        logger.debug(f"User {user_id}: deleted {deleted_messages} sent messages")

        removed_memberships = cls._remove_memberships(user_id)
        logger.debug(f"User {user_id}: removed {removed_memberships} memberships")

        deleted_active_chats, _ = ActiveChat.objects.filter(user_id=user_id).delete()

        deleted_typing, _ = TypingIndicator.objects.filter(user_id=user_id).delete()

        deleted_users, _ = ChatUser.objects.filter(pk=user_id).delete()

        summary = {
            "user_id": user_id,
            "messages": deleted_messages,
            "memberships": removed_memberships,
            "active_chats": deleted_active_chats,
            "typing_indicators": deleted_typing,
            "user_deleted": bool(deleted_users),
        }
        logger.info(f"Cleaned up user {user_id}", extra=summary)
        return ServiceResult.success(summary)

    @classmethod
    def _remove_memberships(cls, user_id: int) -> int:
        """
        Delete the user's memberships and decrement each group's count.

        Each membership is handled in its own transaction.
        """
        memberships = list(
            GroupMembership.objects.filter(user_id=user_id).values_list("id", "group_id")
        )
        return sum(
            cls._remove_membership(membership_id, group_id)
            for membership_id, group_id in memberships
        )

    @classmethod
    def _remove_membership(cls, membership_id: int, group_id: int) -> bool:
        """
        Delete one membership and, if this call deleted it, decrement its group.

        A concurrent run holding the same membership finds the row gone and
        leaves the count alone, so one membership is only ever decremented once.

        Returns:
            True if this call deleted the row
        """
        with cls.atomic():
            deleted, _ = GroupMembership.objects.filter(pk=membership_id).delete()
            if deleted:
                _decrement_member_count(group_id)
        return bool(deleted)

    @classmethod
    def logout(cls, user: ChatUser) -> ServiceResult[None]:
        """
        Log a user out and schedule their cleanup.

        The user is flagged offline right away (freeing the username and
        hiding them from the online list); the cascading delete runs in the
        background.
        """
        ChatUser.objects.filter(pk=user.id).update(
            is_online=False,
            updated_at=timezone.now(),
        )
        enqueue(CLEANUP_TASKS.DELETE_USER_AND_DATA, {"user_id": user.id})

        cls.get_logger().info(f"User {user.id} logged out, cleanup scheduled")
        return ServiceResult.success(None)

    @classmethod
    def sweep_idle_users(cls, now: datetime | None = None) -> int:
        """
        Schedule cleanup for every user idle past the threshold.

        Does not touch the idle users' rows.

        Returns:
            Number of cleanups scheduled
        """
        idle_user_ids = PresenceService.find_idle_user_ids(now)
        for user_id in idle_user_ids:
            enqueue(CLEANUP_TASKS.DELETE_USER_AND_DATA, {"user_id": user_id})

        if idle_user_ids:
            cls.get_logger().info(
                f"Scheduled cleanup for {len(idle_user_ids)} idle users",
                extra={"queued_count": len(idle_user_ids)},
            )
        return len(idle_user_ids)
