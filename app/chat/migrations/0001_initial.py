import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ChatUser",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "username",
                    models.CharField(
                        db_index=True,
                        help_text="Display name (unique only among online users)",
                        max_length=32,
                    ),
                ),
                (
                    "session_id",
                    models.CharField(
                        help_text="Opaque session identifier supplied by the client",
                        max_length=128,
                        unique=True,
                    ),
                ),
                (
                    "is_online",
                    models.BooleanField(
                        db_index=True,
                        default=True,
                        help_text="Online flag maintained by heartbeats",
                    ),
                ),
                (
                    "last_seen",
                    models.DateTimeField(
                        db_index=True,
                        help_text="Timestamp of the most recent heartbeat",
                    ),
                ),
            ],
            options={
                "db_table": "chat_user",
                "ordering": ["username", "id"],
                "indexes": [
                    models.Index(
                        fields=["is_online", "last_seen"],
                        name="chat_user_online_seen_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Group",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "name",
                    models.CharField(help_text="Group name", max_length=64, unique=True),
                ),
                (
                    "member_count",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Cached count of memberships (recomputed by the audit task)",
                    ),
                ),
            ],
            options={
                "db_table": "chat_group",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="ActiveChat",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "chat_id",
                    models.CharField(
                        help_text="Chat identifier (private:<a>:<b> or group:<id>)",
                        max_length=64,
                    ),
                ),
                (
                    "device_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Opaque client device identifier",
                        max_length=64,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="User viewing the chat",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="active_chats",
                        to="chat.chatuser",
                    ),
                ),
            ],
            options={
                "db_table": "chat_active_chat",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user", "device_id"),
                        name="unique_active_chat_per_device",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="GroupMembership",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        help_text="Group joined",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to="chat.group",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="Member",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="memberships",
                        to="chat.chatuser",
                    ),
                ),
            ],
            options={
                "db_table": "chat_group_membership",
                "ordering": ["created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user", "group"),
                        name="unique_group_membership",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                ("content", models.TextField(help_text="Message text")),
                (
                    "is_seen",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the message has been seen",
                    ),
                ),
                (
                    "seen_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the message was marked seen",
                        null=True,
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        blank=True,
                        help_text="Target group of a group message",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.group",
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        help_text="Recipient of a private message (kept after recipient cleanup)",
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="chat.chatuser",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        help_text="User who sent the message",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sent_messages",
                        to="chat.chatuser",
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["recipient", "sender", "created_at"],
                        name="chat_msg_private_idx",
                    ),
                    models.Index(
                        fields=["group", "created_at"],
                        name="chat_msg_group_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("group__isnull", True), ("recipient__isnull", False)),
                            models.Q(("group__isnull", False), ("recipient__isnull", True)),
                            _connector="OR",
                        ),
                        name="message_exactly_one_target",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="TypingIndicator",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "chat_id",
                    models.CharField(
                        db_index=True,
                        help_text="Chat identifier (private:<a>:<b> or group:<id>)",
                        max_length=64,
                    ),
                ),
                (
                    "is_typing",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the user is currently typing",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="User typing",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="typing_indicators",
                        to="chat.chatuser",
                    ),
                ),
            ],
            options={
                "db_table": "chat_typing_indicator",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user", "chat_id"),
                        name="unique_typing_indicator",
                    )
                ],
            },
        ),
    ]
