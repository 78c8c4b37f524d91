"""
Task dispatch for fire-and-forget background work.

enqueue() is the single entry point the chat services use to hand work to
Celery. Tasks are addressed by name (see chat.constants.CLEANUP_TASKS) with a
JSON payload passed as keyword arguments.

Delivery semantics:
    - The message is published only after the surrounding database
      transaction commits, so a rolled-back request never schedules work.
    - Delivery is at-least-once (consumers run with acks_late). Every task
      sent through here must be idempotent.

Usage:
    from chat.constants import CLEANUP_TASKS
    from chat.dispatch import enqueue

    enqueue(CLEANUP_TASKS.DELETE_USER_AND_DATA, {"user_id": user.id})
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from django.db import transaction

from config.celery import app as celery_app

logger = logging.getLogger(__name__)


def _publish(task_type: str, payload: dict[str, Any]) -> None:
    celery_app.send_task(task_type, kwargs=payload)
    logger.debug(
        f"Enqueued {task_type}",
        extra={"task_type": task_type, "payload": payload},
    )


def enqueue(task_type: str, payload: dict[str, Any]) -> None:
    """
    Schedule a named task to run asynchronously.

    Args:
        task_type: Registered Celery task name
        payload: JSON-serializable keyword arguments for the task
    """
    transaction.on_commit(partial(_publish, task_type, dict(payload)))
