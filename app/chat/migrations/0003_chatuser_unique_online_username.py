# Generated manually

"""
Enforce username uniqueness among online users at the database level.

Two sessions claiming the same username concurrently can both pass the
service-level check; the partial unique index makes the second insert fail
so the service can report USERNAME_TAKEN.
"""

from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("chat", "0002_add_celery_beat_schedules"),
    ]

    operations = [
        # UNIQUE(username) WHERE is_online = TRUE
        migrations.AddConstraint(
            model_name="chatuser",
            constraint=models.UniqueConstraint(
                condition=models.Q(("is_online", True)),
                fields=("username",),
                name="chat_user_unique_online_username",
            ),
        ),
    ]
