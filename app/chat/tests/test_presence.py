"""
Tests for PresenceService.

Presence is derived from last_seen at read time. Two windows apply:
- The online window (default 60s) decides who appears in the online list,
  and only for users flagged online.
- The idle threshold (default 300s) decides who is eligible for deletion,
  regardless of the online flag.

All timing is controlled with freezegun.
"""

from datetime import timedelta

import pytest
from django.utils import timezone
from freezegun import freeze_time

from chat.models import ChatUser
from chat.services import PresenceService
from chat.tests.factories import ChatUserFactory

T0 = "2024-01-01 12:00:00"


@pytest.fixture
def frozen_now():
    with freeze_time(T0):
        yield timezone.now()


def seen_ago(now, seconds, **kwargs):
    return ChatUserFactory(last_seen=now - timedelta(seconds=seconds), **kwargs)


class TestOnlineUsers:
    def test_lists_recently_seen_online_users(self, db, frozen_now):
        user = seen_ago(frozen_now, 10)

        assert list(PresenceService.online_users()) == [user]

    def test_excludes_users_flagged_offline(self, db, frozen_now):
        seen_ago(frozen_now, 10, is_online=False)

        assert list(PresenceService.online_users()) == []

    def test_excludes_flagged_online_users_outside_window(self, db, frozen_now):
        seen_ago(frozen_now, 61)

        assert list(PresenceService.online_users()) == []

    def test_user_drops_out_without_flag_change(self, db):
        with freeze_time(T0):
            user = ChatUserFactory()
            assert list(PresenceService.online_users()) == [user]

        with freeze_time("2024-01-01 12:01:30"):
            assert list(PresenceService.online_users()) == []

        user.refresh_from_db()
        assert user.is_online is True

    def test_window_is_configurable(self, db, settings, frozen_now):
        settings.HUSHGRAM_ONLINE_WINDOW_SECONDS = 120
        user = seen_ago(frozen_now, 90)

        assert list(PresenceService.online_users()) == [user]

    def test_ordered_by_username(self, db, frozen_now):
        seen_ago(frozen_now, 5, username="zoe")
        seen_ago(frozen_now, 5, username="amy")

        assert [u.username for u in PresenceService.online_users()] == ["amy", "zoe"]


class TestHeartbeat:
    def test_refreshes_last_seen_and_sets_flag(self, db):
        with freeze_time(T0):
            user = ChatUserFactory(is_online=False)

        with freeze_time("2024-01-01 12:05:00"):
            result = PresenceService.heartbeat(user.id, is_online=True)
            now = timezone.now()

        assert result.success is True
        user.refresh_from_db()
        assert user.is_online is True
        assert user.last_seen == now

    def test_offline_heartbeat_hides_user_but_refreshes_last_seen(self, db, frozen_now):
        user = seen_ago(frozen_now, 200)

        PresenceService.heartbeat(user.id, is_online=False)

        user.refresh_from_db()
        assert user.is_online is False
        assert user.last_seen == frozen_now
        assert list(PresenceService.online_users()) == []

    def test_coming_back_online_under_a_name_now_taken(self, db, frozen_now):
        user = seen_ago(frozen_now, 30, username="alice", is_online=False)
        seen_ago(frozen_now, 5, username="alice")

        result = PresenceService.heartbeat(user.id, is_online=True)

        user.refresh_from_db()
        assert result.error_code == "USERNAME_TAKEN"
        assert user.is_online is False

    def test_unknown_user(self, db):
        result = PresenceService.heartbeat(999999, is_online=True)

        assert result.success is False
        assert result.error_code == "USER_NOT_FOUND"


class TestFindIdleUsers:
    def test_returns_users_past_idle_threshold(self, db, frozen_now):
        idle = seen_ago(frozen_now, 301)
        seen_ago(frozen_now, 299)

        assert PresenceService.find_idle_user_ids() == [idle.id]

    def test_ignores_online_flag(self, db, frozen_now):
        flagged_online = seen_ago(frozen_now, 600, is_online=True)
        flagged_offline = seen_ago(frozen_now, 400, is_online=False)

        assert set(PresenceService.find_idle_user_ids()) == {
            flagged_online.id,
            flagged_offline.id,
        }

    def test_offline_but_recent_user_is_not_idle(self, db, frozen_now):
        seen_ago(frozen_now, 30, is_online=False)

        assert PresenceService.find_idle_user_ids() == []

    def test_between_windows_user_is_neither_online_nor_idle(self, db, frozen_now):
        seen_ago(frozen_now, 120)

        assert list(PresenceService.online_users()) == []
        assert PresenceService.find_idle_user_ids() == []

    def test_scan_does_not_modify_users(self, db, frozen_now):
        user = seen_ago(frozen_now, 1000)

        PresenceService.find_idle_user_ids()

        refreshed = ChatUser.objects.get(pk=user.pk)
        assert refreshed.is_online is True
        assert refreshed.last_seen == user.last_seen

    def test_threshold_is_configurable(self, db, settings, frozen_now):
        settings.HUSHGRAM_IDLE_THRESHOLD_SECONDS = 30
        user = seen_ago(frozen_now, 45)

        assert PresenceService.find_idle_user_ids() == [user.id]

    def test_explicit_now(self, db):
        with freeze_time(T0):
            user = ChatUserFactory()
            later = timezone.now() + timedelta(minutes=10)

        assert PresenceService.find_idle_user_ids(now=later) == [user.id]
