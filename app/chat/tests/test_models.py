"""
Tests for chat models.

Covers database-level guarantees the services rely on:
- A message targets exactly one of recipient / group
- One membership per (user, group), one typing row per (user, chat)
- Owned rows protect their user from deletion
- A message's recipient may dangle after the recipient row is gone
"""

import pytest
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError

from chat.models import ChatUser, GroupMembership, Message, TypingIndicator
from chat.tests.factories import (
    ChatUserFactory,
    GroupFactory,
    GroupMembershipFactory,
    GroupMessageFactory,
    MessageFactory,
)


class TestMessageTargetConstraint:
    def test_private_message_is_valid(self, db):
        message = MessageFactory()

        assert message.recipient_id is not None
        assert message.is_group_message is False

    def test_group_message_is_valid(self, db):
        message = GroupMessageFactory()

        assert message.group_id is not None
        assert message.is_group_message is True

    def test_message_with_both_targets_is_rejected(self, db):
        sender = ChatUserFactory()
        recipient = ChatUserFactory()
        group = GroupFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            Message.objects.create(
                sender=sender,
                recipient=recipient,
                group=group,
                content="hi",
            )

    def test_message_with_no_target_is_rejected(self, db):
        sender = ChatUserFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            Message.objects.create(sender=sender, content="hi")


class TestUniqueness:
    def test_duplicate_membership_is_rejected(self, db):
        membership = GroupMembershipFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            GroupMembership.objects.create(user=membership.user, group=membership.group)

    def test_duplicate_typing_indicator_is_rejected(self, db):
        user = ChatUserFactory()
        TypingIndicator.objects.create(user=user, chat_id="group:1", is_typing=True)

        with pytest.raises(IntegrityError), transaction.atomic():
            TypingIndicator.objects.create(user=user, chat_id="group:1", is_typing=False)

    def test_session_id_is_unique(self, db):
        user = ChatUserFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            ChatUserFactory(session_id=user.session_id)

    def test_offline_users_may_share_a_username(self, db):
        ChatUserFactory(username="alice", is_online=False)
        ChatUserFactory(username="alice", is_online=False)
        ChatUserFactory(username="alice")

        assert ChatUser.objects.filter(username="alice").count() == 3

    def test_online_users_may_not_share_a_username(self, db):
        ChatUserFactory(username="alice")

        with pytest.raises(IntegrityError), transaction.atomic():
            ChatUserFactory(username="alice")


class TestOwnership:
    def test_user_with_sent_messages_cannot_be_deleted(self, db):
        message = MessageFactory()

        with pytest.raises(ProtectedError):
            message.sender.delete()

    def test_user_with_membership_cannot_be_deleted(self, db):
        membership = GroupMembershipFactory()

        with pytest.raises(ProtectedError):
            membership.user.delete()

    def test_recipient_can_be_deleted_leaving_dangling_id(self, db):
        message = MessageFactory()
        recipient_id = message.recipient_id

        ChatUser.objects.filter(pk=recipient_id).delete()

        message.refresh_from_db()
        assert message.recipient_id == recipient_id
        assert not ChatUser.objects.filter(pk=recipient_id).exists()

    def test_deleting_group_removes_its_messages_and_memberships(self, db):
        membership = GroupMembershipFactory()
        GroupMessageFactory(group=membership.group, sender=membership.user)

        membership.group.delete()

        assert not GroupMembership.objects.exists()
        assert not Message.objects.exists()


class TestStringRepresentations:
    def test_chat_user_str(self, db):
        user = ChatUserFactory(username="alice")

        assert str(user) == f"alice ({user.pk})"

    def test_group_str(self, db):
        assert str(GroupFactory(name="general")) == "Group: general"

    def test_chat_user_is_authenticated(self, db):
        user = ChatUserFactory()

        assert user.is_authenticated is True
        assert user.is_anonymous is False
