"""
Celery tasks for chat app.

This module defines async tasks for:
- Cascading deletion of a user and their data (on logout or when idle)
- The periodic idle-user sweep
- Typing indicator expiry
- Group member count reconciliation

All tasks are idempotent: delivery is at-least-once and a repeated run only
produces no-ops. Periodic schedules are registered in the database by
migration 0002_add_celery_beat_schedules (django-celery-beat).

Related files:
    - services.py: UserCleanupService, GroupService, TypingService
    - dispatch.py: enqueue() used to schedule delete_user_and_data

Usage:
    from chat.tasks import delete_user_and_data

    delete_user_and_data.delay(user_id)
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.db import DatabaseError

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(DatabaseError,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": 5},
    acks_late=True,
)
def delete_user_and_data(self, user_id: int) -> dict:
    """
    Delete a user and everything they own.

    Database errors (including a ProtectedError raised when the user sent a
    message while the workflow ran) are retried with backoff. Each retry
    resumes from whatever the previous attempt left behind.

    Args:
        user_id: ID of the ChatUser to delete

    Returns:
        Dict with per-stage deletion counts
    """
    from chat.services import UserCleanupService

    logger.info(
        "Deleting user and data",
        extra={"user_id": user_id, "attempt": self.request.retries},
    )

    result = UserCleanupService.delete_user_and_data(user_id)
    return result.data


@shared_task
def sweep_idle_users() -> dict:
    """
    Schedule deletion of every idle user.

    Runs every minute via celery-beat. Only enqueues; the deletions run as
    separate delete_user_and_data tasks.

    Returns:
        Dict with the number of users queued
    """
    from chat.services import UserCleanupService

    queued = UserCleanupService.sweep_idle_users()
    return {"queued_count": queued}


@shared_task
def expire_typing_indicators() -> dict:
    """
    Delete stale typing indicators.

    Runs every minute via celery-beat.

    Returns:
        Dict with the number of indicators deleted
    """
    from chat.services import TypingService

    deleted = TypingService.expire_stale_indicators()
    return {"deleted_count": deleted}


@shared_task(
    bind=True,
    autoretry_for=(DatabaseError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def reconcile_group_member_counts(self) -> dict:
    """
    Recompute every group's member_count from its memberships.

    Runs hourly via celery-beat. Drift is logged at WARNING level by
    GroupService.recalculate_member_count().

    Returns:
        Dict with the number of groups corrected and their details
    """
    from chat.services import GroupService

    corrections = GroupService.reconcile_member_counts()
    return {
        "corrected_count": len(corrections),
        "corrections": corrections,
    }
