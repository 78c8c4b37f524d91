"""
Add Celery Beat schedules for chat maintenance tasks.

This migration creates periodic task schedules for:
- The idle user sweep (schedules cascading cleanup for idle users)
- Typing indicator expiry
- Group member count reconciliation
"""

from django.db import migrations

TASK_NAMES = [
    "Chat: Sweep Idle Users",
    "Chat: Expire Typing Indicators",
    "Chat: Reconcile Group Member Counts",
]


def create_periodic_tasks(apps, schema_editor):
    """Create periodic tasks for chat maintenance."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule_1min, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="minutes",
    )
    schedule_1hour, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="hours",
    )

    PeriodicTask.objects.get_or_create(
        name="Chat: Sweep Idle Users",
        defaults={
            "task": "chat.tasks.sweep_idle_users",
            "interval": schedule_1min,
            "enabled": True,
            "description": (
                "Schedules deletion of users whose last heartbeat is older "
                "than the idle threshold, regardless of their online flag."
            ),
        },
    )

    PeriodicTask.objects.get_or_create(
        name="Chat: Expire Typing Indicators",
        defaults={
            "task": "chat.tasks.expire_typing_indicators",
            "interval": schedule_1min,
            "enabled": True,
            "description": "Deletes typing indicators not refreshed within the typing TTL.",
        },
    )

    PeriodicTask.objects.get_or_create(
        name="Chat: Reconcile Group Member Counts",
        defaults={
            "task": "chat.tasks.reconcile_group_member_counts",
            "interval": schedule_1hour,
            "enabled": True,
            "description": (
                "Recomputes each group's member_count from its memberships "
                "and logs any drift that was corrected."
            ),
        },
    )


def remove_periodic_tasks(apps, schema_editor):
    """Remove chat periodic tasks on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name__in=TASK_NAMES).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("chat", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
