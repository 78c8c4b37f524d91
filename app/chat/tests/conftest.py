"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures (alice, bob, carol)
- Group fixtures with memberships
- API client helpers authenticated by session id
- A capture fixture for tasks scheduled through chat.dispatch

Usage:
    def test_example(alice_client, group):
        response = alice_client.get("/api/v1/chat/groups/")
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from chat.tests.factories import (
    ChatUserFactory,
    GroupFactory,
    GroupMembershipFactory,
)
from config.celery import app as celery_app


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    return ChatUserFactory(username="alice")


@pytest.fixture
def bob(db):
    return ChatUserFactory(username="bob")


@pytest.fixture
def carol(db):
    return ChatUserFactory(username="carol")


# =============================================================================
# Group Fixtures
# =============================================================================


@pytest.fixture
def group(db):
    """An empty group."""
    return GroupFactory(name="general")


@pytest.fixture
def alice_group(db, alice, group):
    """The general group with alice as its only member."""
    GroupMembershipFactory(user=alice, group=group)
    group.refresh_from_db()
    return group


# =============================================================================
# API Client Fixtures
# =============================================================================


def session_client(user) -> APIClient:
    """Return an APIClient sending user's session id."""
    client = APIClient()
    client.credentials(HTTP_X_SESSION_ID=user.session_id)
    return client


@pytest.fixture
def api_client():
    """Unauthenticated client."""
    return APIClient()


@pytest.fixture
def alice_client(alice):
    return session_client(alice)


@pytest.fixture
def bob_client(bob):
    return session_client(bob)


# =============================================================================
# Dispatch Fixtures
# =============================================================================


@pytest.fixture
def send_task(mocker):
    """Intercept Celery publishing; the broker is never contacted."""
    return mocker.patch.object(celery_app, "send_task")
