"""
Django admin configuration for chat models.

Provides admin interfaces for:
- User inspection and scheduled cleanup
- Group management and member count repair
- Message moderation
- Ephemeral state (active chats, typing indicators)
"""

from django.contrib import admin

from chat.constants import CLEANUP_TASKS
from chat.dispatch import enqueue
from chat.models import (
    ActiveChat,
    ChatUser,
    Group,
    GroupMembership,
    Message,
    TypingIndicator,
)
from chat.services import GroupService


class GroupMembershipInline(admin.TabularInline):
    """Inline display of memberships in group admin."""

    model = GroupMembership
    extra = 0
    readonly_fields = ["user", "created_at"]
    can_delete = False

    def has_add_permission(self, request, obj=None) -> bool:
        # member_count is only kept in sync through GroupService
        return False


@admin.register(ChatUser)
class ChatUserAdmin(admin.ModelAdmin):
    """Admin interface for ChatUser model."""

    list_display = ["id", "username", "is_online", "last_seen", "created_at"]
    list_filter = ["is_online"]
    search_fields = ["username", "session_id"]
    readonly_fields = ["session_id", "last_seen", "created_at", "updated_at"]
    ordering = ["-last_seen"]
    actions = ["schedule_cleanup"]

    @admin.action(description="Delete selected users and their data")
    def schedule_cleanup(self, request, queryset):
        """Schedule the cascading cleanup for each selected user."""
        user_ids = list(queryset.values_list("id", flat=True))
        for user_id in user_ids:
            enqueue(CLEANUP_TASKS.DELETE_USER_AND_DATA, {"user_id": user_id})
        self.message_user(request, f"Scheduled cleanup for {len(user_ids)} users.")

    def has_delete_permission(self, request, obj=None) -> bool:
        # Owned rows are PROTECTed; use the cleanup action instead
        return False


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    """Admin interface for Group model."""

    list_display = ["id", "name", "member_count", "created_at"]
    search_fields = ["name"]
    readonly_fields = ["member_count", "created_at", "updated_at"]
    inlines = [GroupMembershipInline]
    ordering = ["name"]
    actions = ["recalculate_member_counts"]

    @admin.action(description="Recalculate member counts")
    def recalculate_member_counts(self, request, queryset):
        """Recompute member_count from memberships for the selected groups."""
        corrected = sum(
            1 for group in queryset if GroupService.recalculate_member_count(group)
        )
        self.message_user(
            request,
            f"Checked {queryset.count()} groups, corrected {corrected}.",
        )


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "sender",
        "recipient_id",
        "group",
        "content_preview",
        "is_seen",
        "created_at",
    ]
    list_filter = ["is_seen", "created_at"]
    search_fields = ["content", "sender__username"]
    readonly_fields = ["created_at", "updated_at", "seen_at"]
    raw_id_fields = ["sender", "group"]
    ordering = ["-created_at"]

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content for list display."""
        max_length = 50
        if len(obj.content) > max_length:
            return obj.content[:max_length] + "..."
        return obj.content


@admin.register(ActiveChat)
class ActiveChatAdmin(admin.ModelAdmin):
    list_display = ["user", "chat_id", "device_id", "updated_at"]
    search_fields = ["chat_id", "user__username"]
    raw_id_fields = ["user"]


@admin.register(TypingIndicator)
class TypingIndicatorAdmin(admin.ModelAdmin):
    list_display = ["user", "chat_id", "is_typing", "updated_at"]
    list_filter = ["is_typing"]
    raw_id_fields = ["user"]
