"""
Factory Boy factories for chat models.

Provides test data generation for:
- ChatUser: Session-bound users (online, seen now by default)
- Group / GroupMembership: Groups and memberships with consistent counts
- Message: Private and group messages
- ActiveChat / TypingIndicator: Ephemeral per-user state

Usage:
    from chat.tests.factories import (
        ChatUserFactory,
        GroupFactory,
        GroupMembershipFactory,
        MessageFactory,
        GroupMessageFactory,
    )

    # A group with one member (member_count == 1)
    membership = GroupMembershipFactory()

    # A private message between two new users
    message = MessageFactory()
"""

import factory
from django.db.models import F
from django.utils import timezone

from chat.models import (
    ActiveChat,
    ChatUser,
    Group,
    GroupMembership,
    Message,
    TypingIndicator,
)


class ChatUserFactory(factory.django.DjangoModelFactory):
    """
    Factory for ChatUser.

    Examples:
        user = ChatUserFactory(username="alice")

        # A user flagged offline
        user = ChatUserFactory(is_online=False)
    """

    class Meta:
        model = ChatUser

    username = factory.Sequence(lambda n: f"user{n}")
    session_id = factory.Sequence(lambda n: f"session-{n:06d}")
    is_online = True
    last_seen = factory.LazyFunction(timezone.now)


class GroupFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Group

    name = factory.Sequence(lambda n: f"group-{n}")
    member_count = 0


class GroupMembershipFactory(factory.django.DjangoModelFactory):
    """
    Factory for GroupMembership.

    Increments the group's member_count so the cached count matches the
    membership rows, as GroupService.join_group() would.
    """

    class Meta:
        model = GroupMembership

    user = factory.SubFactory(ChatUserFactory)
    group = factory.SubFactory(GroupFactory)

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        membership = super()._create(model_class, *args, **kwargs)
        Group.objects.filter(pk=membership.group_id).update(
            member_count=F("member_count") + 1
        )
        membership.group.refresh_from_db()
        return membership


class MessageFactory(factory.django.DjangoModelFactory):
    """Factory for private messages."""

    class Meta:
        model = Message

    sender = factory.SubFactory(ChatUserFactory)
    recipient = factory.SubFactory(ChatUserFactory)
    group = None
    content = factory.Faker("sentence")
    is_seen = False


class GroupMessageFactory(MessageFactory):
    """Factory for group messages."""

    recipient = None
    group = factory.SubFactory(GroupFactory)


class ActiveChatFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ActiveChat

    user = factory.SubFactory(ChatUserFactory)
    chat_id = factory.LazyAttribute(lambda o: f"private:{o.user.id}:{o.user.id + 1}")
    device_id = ""


class TypingIndicatorFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = TypingIndicator

    user = factory.SubFactory(ChatUserFactory)
    chat_id = "group:1"
    is_typing = True
