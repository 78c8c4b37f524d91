"""
Chat app for ephemeral, pseudonymous messaging.

This app handles:
- Users bound to an opaque session id (no accounts, no passwords)
- Presence derived from heartbeat recency
- Private and group messages, seen markers
- Active chat markers and typing indicators
- Deleting a user and all their data on logout or when idle

Background work:
    Cleanup runs in Celery (see tasks.py). Services schedule it through
    chat.dispatch.enqueue(); periodic sweeps are driven by celery-beat.

Usage:
    from chat.services import MessageService, UserDirectoryService

    result = UserDirectoryService.create_or_resume("alice", session_id)
    alice = result.data

    MessageService.send_message(
        sender=alice,
        content="Hello!",
        recipient_id=bob.id,
    )
"""
