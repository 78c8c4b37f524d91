"""
Celery configuration for Hushgram.

Celery runs the background half of the chat system:
- Cascading deletion of a user and their data (on logout or when idle)
- Periodic maintenance (idle sweep, typing expiry, member count audit)

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps; periodic schedules
live in the database (django-celery-beat DatabaseScheduler).

Usage:
    # Services schedule work by task name, after the transaction commits:
    from chat.dispatch import enqueue

    enqueue("chat.tasks.delete_user_and_data", {"user_id": user.id})

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Create Celery application instance
app = Celery("config")

# Load configuration from Django settings
# All Celery settings should be prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all registered Django apps
app.autodiscover_tasks()
