"""
Tests for UserCleanupService.

This module tests the cascading deletion of a user and their data:
- All five stages remove what they own and nothing else
- Group member counts are decremented and never go negative
- Messages addressed to the deleted user by others survive
- Re-running the workflow (or a partially completed run) converges
- Overlapping runs decrement each membership once; a message sent mid-run
  blocks the final delete until a re-run
- logout and the idle sweep schedule work through chat.dispatch
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.db.models import ProtectedError
from django.utils import timezone
from freezegun import freeze_time

from chat.constants import CLEANUP_TASKS
from chat.models import (
    ActiveChat,
    ChatUser,
    Group,
    GroupMembership,
    Message,
    TypingIndicator,
)
from chat.serializers import MessageSerializer
from chat.services import (
    GroupService,
    MessageService,
    UserCleanupService,
    UserDirectoryService,
)
from chat.tests.factories import (
    ActiveChatFactory,
    ChatUserFactory,
    GroupFactory,
    GroupMembershipFactory,
    GroupMessageFactory,
    MessageFactory,
    TypingIndicatorFactory,
)


class TestDeleteUserAndData:
    def test_removes_everything_the_user_owns(self, alice, bob, alice_group):
        MessageFactory(sender=alice, recipient=bob)
        GroupMessageFactory(sender=alice, group=alice_group)
        ActiveChatFactory(user=alice)
        TypingIndicatorFactory(user=alice)

        result = UserCleanupService.delete_user_and_data(alice.id)

        assert result.success is True
        assert result.data == {
            "user_id": alice.id,
            "messages": 2,
            "memberships": 1,
            "active_chats": 1,
            "typing_indicators": 1,
            "user_deleted": True,
        }
        assert not ChatUser.objects.filter(pk=alice.id).exists()
        assert not Message.objects.filter(sender_id=alice.id).exists()
        assert not GroupMembership.objects.filter(user_id=alice.id).exists()
        assert not ActiveChat.objects.filter(user_id=alice.id).exists()
        assert not TypingIndicator.objects.filter(user_id=alice.id).exists()

    def test_leaves_other_users_data_alone(self, alice, bob, alice_group):
        GroupMembershipFactory(user=bob, group=alice_group)
        bob_message = GroupMessageFactory(sender=bob, group=alice_group)
        ActiveChatFactory(user=bob)
        TypingIndicatorFactory(user=bob)

        UserCleanupService.delete_user_and_data(alice.id)

        assert ChatUser.objects.filter(pk=bob.id).exists()
        assert Message.objects.filter(pk=bob_message.pk).exists()
        assert GroupMembership.objects.filter(user=bob).exists()
        assert ActiveChat.objects.filter(user=bob).exists()
        assert TypingIndicator.objects.filter(user=bob).exists()

    def test_decrements_member_count_of_each_group(self, alice, bob):
        first = GroupFactory()
        second = GroupFactory()
        GroupMembershipFactory(user=alice, group=first)
        GroupMembershipFactory(user=bob, group=first)
        GroupMembershipFactory(user=alice, group=second)

        UserCleanupService.delete_user_and_data(alice.id)

        first.refresh_from_db()
        second.refresh_from_db()
        assert first.member_count == 1
        assert second.member_count == 0

    def test_member_count_never_goes_negative(self, alice, alice_group):
        Group.objects.filter(pk=alice_group.pk).update(member_count=0)

        UserCleanupService.delete_user_and_data(alice.id)

        alice_group.refresh_from_db()
        assert alice_group.member_count == 0

    def test_member_count_matches_memberships_afterwards(self, alice, bob, carol):
        group = GroupFactory()
        for user in (alice, bob, carol):
            GroupService.join_group(user, group.id)

        UserCleanupService.delete_user_and_data(bob.id)

        assert GroupService.recalculate_member_count(group) is False

    def test_messages_received_from_others_survive(self, alice, bob):
        received = MessageFactory(sender=bob, recipient=alice)

        UserCleanupService.delete_user_and_data(alice.id)

        received.refresh_from_db()
        assert received.recipient_id == alice.id

    def test_surviving_message_renders_deleted_user(self, alice, bob):
        received = MessageFactory(sender=bob, recipient=alice)

        UserCleanupService.delete_user_and_data(alice.id)

        messages = list(MessageService.get_private_messages(bob.id, alice.id))
        data = MessageSerializer(
            messages,
            many=True,
            context={"usernames": MessageService.resolve_usernames(messages)},
        ).data
        assert [m["id"] for m in data] == [received.id]
        assert data[0]["sender_username"] == "bob"
        assert data[0]["recipient_username"] == "Deleted user"

    def test_second_run_is_a_no_op(self, alice, alice_group):
        MessageFactory(sender=alice)
        UserCleanupService.delete_user_and_data(alice.id)

        result = UserCleanupService.delete_user_and_data(alice.id)

        alice_group.refresh_from_db()
        assert result.success is True
        assert result.data["messages"] == 0
        assert result.data["memberships"] == 0
        assert result.data["user_deleted"] is False
        assert alice_group.member_count == 0

    def test_unknown_user_is_a_no_op(self, db):
        result = UserCleanupService.delete_user_and_data(999999)

        assert result.success is True
        assert result.data["user_deleted"] is False

    def test_resumes_after_partial_run(self, alice, bob, alice_group):
        # Stages 1 and 2 completed before a crash
        MessageFactory(sender=alice, recipient=bob)
        TypingIndicatorFactory(user=alice)
        Message.objects.filter(sender=alice).delete()
        GroupService.leave_group(alice, alice_group.id)

        result = UserCleanupService.delete_user_and_data(alice.id)

        alice_group.refresh_from_db()
        assert result.data["typing_indicators"] == 1
        assert result.data["user_deleted"] is True
        assert alice_group.member_count == 0

    def test_orphaned_membership_is_cleaned_on_rerun(self, alice, bob, alice_group):
        GroupMembershipFactory(user=bob, group=alice_group)
        UserCleanupService._remove_memberships(alice.id)
        alice_group.refresh_from_db()
        assert alice_group.member_count == 1

        UserCleanupService.delete_user_and_data(alice.id)

        alice_group.refresh_from_db()
        assert alice_group.member_count == 1
        assert not ChatUser.objects.filter(pk=alice.id).exists()


class TestOverlappingRuns:
    def test_duplicate_run_with_stale_snapshot_decrements_once(self, alice, bob, alice_group):
        GroupMembershipFactory(user=bob, group=alice_group)
        first_snapshot = list(
            GroupMembership.objects.filter(user_id=alice.id).values_list("id", "group_id")
        )
        second_snapshot = list(first_snapshot)

        first = [UserCleanupService._remove_membership(*row) for row in first_snapshot]
        second = [UserCleanupService._remove_membership(*row) for row in second_snapshot]

        alice_group.refresh_from_db()
        assert first == [True]
        assert second == [False]
        assert alice_group.member_count == 1

    def test_late_duplicate_after_full_run_is_harmless(self, alice, bob, alice_group):
        GroupMembershipFactory(user=bob, group=alice_group)
        stale_snapshot = list(
            GroupMembership.objects.filter(user_id=alice.id).values_list("id", "group_id")
        )

        UserCleanupService.delete_user_and_data(alice.id)
        for membership_id, group_id in stale_snapshot:
            UserCleanupService._remove_membership(membership_id, group_id)

        alice_group.refresh_from_db()
        assert alice_group.member_count == 1

    def test_message_sent_mid_run_blocks_user_delete_until_rerun(
        self, alice, bob, alice_group
    ):
        remove_memberships = UserCleanupService._remove_memberships

        def send_during_cleanup(user_id):
            removed = remove_memberships(user_id)
            MessageFactory(sender=alice, recipient=bob)
            return removed

        with patch.object(
            UserCleanupService, "_remove_memberships", side_effect=send_during_cleanup
        ):
            with pytest.raises(ProtectedError) as excinfo:
                UserCleanupService.delete_user_and_data(alice.id)

        assert isinstance(excinfo.value, DatabaseError)
        assert ChatUser.objects.filter(pk=alice.id).exists()

        result = UserCleanupService.delete_user_and_data(alice.id)

        alice_group.refresh_from_db()
        assert result.data["messages"] == 1
        assert result.data["user_deleted"] is True
        assert not Message.objects.filter(sender_id=alice.id).exists()
        assert alice_group.member_count == 0


class TestLogout:
    def test_flags_offline_and_schedules_cleanup(
        self, alice, send_task, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            result = UserCleanupService.logout(alice)

        alice.refresh_from_db()
        assert result.success is True
        assert alice.is_online is False
        send_task.assert_called_once_with(
            CLEANUP_TASKS.DELETE_USER_AND_DATA,
            kwargs={"user_id": alice.id},
        )

    def test_does_not_delete_synchronously(self, alice, send_task):
        UserCleanupService.logout(alice)

        assert ChatUser.objects.filter(pk=alice.id).exists()

    def test_nothing_is_published_before_commit(
        self, alice, send_task, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks() as callbacks:
            UserCleanupService.logout(alice)

        assert len(callbacks) == 1
        send_task.assert_not_called()

    def test_username_is_free_after_logout(self, alice, send_task):
        UserCleanupService.logout(alice)

        result = UserDirectoryService.create_or_resume("alice", "another-session")
        assert result.success is True


class TestSweepIdleUsers:
    def test_schedules_one_cleanup_per_idle_user(
        self, db, send_task, django_capture_on_commit_callbacks
    ):
        with freeze_time("2024-01-01 12:00:00"):
            now = timezone.now()
            idle_online = ChatUserFactory(last_seen=now - timedelta(minutes=10))
            idle_offline = ChatUserFactory(
                last_seen=now - timedelta(minutes=6), is_online=False
            )
            ChatUserFactory(last_seen=now - timedelta(minutes=1))

            with django_capture_on_commit_callbacks(execute=True):
                queued = UserCleanupService.sweep_idle_users()

        assert queued == 2
        scheduled = {call.kwargs["kwargs"]["user_id"] for call in send_task.call_args_list}
        assert scheduled == {idle_online.id, idle_offline.id}

    def test_does_not_modify_idle_users(self, db, send_task):
        with freeze_time("2024-01-01 12:00:00"):
            user = ChatUserFactory(last_seen=timezone.now() - timedelta(minutes=10))
            UserCleanupService.sweep_idle_users()

        refreshed = ChatUser.objects.get(pk=user.pk)
        assert refreshed.is_online is True
        assert refreshed.last_seen == user.last_seen

    def test_no_idle_users(self, db, send_task, django_capture_on_commit_callbacks):
        ChatUserFactory()

        with django_capture_on_commit_callbacks(execute=True):
            queued = UserCleanupService.sweep_idle_users()

        assert queued == 0
        send_task.assert_not_called()
