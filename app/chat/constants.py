"""
Constants and configuration for chat module features.

This module centralizes configuration values for:
- Message operations (content limits, history page size)
- Presence tracking (online window, idle threshold, username limits)
- Typing indicators (staleness TTL)
- Cleanup task names used by the task dispatcher

The presence and typing windows can be overridden via Django settings
(HUSHGRAM_ONLINE_WINDOW_SECONDS, HUSHGRAM_IDLE_THRESHOLD_SECONDS,
HUSHGRAM_TYPING_TTL_SECONDS); use the accessor functions below rather than
the raw constants so overrides are honoured.

Import example:
    from chat.constants import MESSAGE_CONFIG, online_window, idle_threshold
"""

from datetime import timedelta
from typing import Final

from django.conf import settings


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = 4000  # Characters
    MIN_CONTENT_LENGTH: Final[int] = 1

    # Rendered in place of a username whose user row no longer exists
    DELETED_USER_LABEL: Final[str] = "Deleted user"


# =============================================================================
# Presence Configuration
# =============================================================================


class PRESENCE_CONFIG:
    """Configuration for presence tracking and idle cleanup."""

    # A user is listed as online only if seen within this window
    ONLINE_WINDOW_SECONDS: Final[int] = 60  # 1 minute

    # Users not seen for this long are deleted by the idle sweep
    IDLE_THRESHOLD_SECONDS: Final[int] = 300  # 5 minutes

    # How often clients should send a heartbeat (UI hint only)
    HEARTBEAT_INTERVAL_SECONDS: Final[int] = 30

    MAX_USERNAME_LENGTH: Final[int] = 32


# =============================================================================
# Typing Indicator Configuration
# =============================================================================


class TYPING_CONFIG:
    """Configuration for typing indicators."""

    # Indicators not refreshed within this TTL are ignored and later expired
    TYPING_TTL_SECONDS: Final[int] = 10


# =============================================================================
# Cleanup Task Names
# =============================================================================


class CLEANUP_TASKS:
    """Celery task names accepted by chat.dispatch.enqueue()."""

    DELETE_USER_AND_DATA: Final[str] = "chat.tasks.delete_user_and_data"


# =============================================================================
# Chat Identifiers
# =============================================================================


class CHAT_ID:
    """Prefixes for string chat identifiers."""

    PRIVATE_PREFIX: Final[str] = "private"
    GROUP_PREFIX: Final[str] = "group"
    SEPARATOR: Final[str] = ":"


def online_window() -> timedelta:
    """Presence window used by the online user list."""
    return timedelta(
        seconds=getattr(
            settings,
            "HUSHGRAM_ONLINE_WINDOW_SECONDS",
            PRESENCE_CONFIG.ONLINE_WINDOW_SECONDS,
        )
    )


def idle_threshold() -> timedelta:
    """Idle age after which the sweep schedules a user for deletion."""
    return timedelta(
        seconds=getattr(
            settings,
            "HUSHGRAM_IDLE_THRESHOLD_SECONDS",
            PRESENCE_CONFIG.IDLE_THRESHOLD_SECONDS,
        )
    )


def typing_ttl() -> timedelta:
    """Age after which a typing indicator is considered stale."""
    return timedelta(
        seconds=getattr(
            settings,
            "HUSHGRAM_TYPING_TTL_SECONDS",
            TYPING_CONFIG.TYPING_TTL_SECONDS,
        )
    )
