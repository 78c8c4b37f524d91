"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Database constraints and ownership rules
- test_services.py: Directory, message, group and ephemeral state services
- test_presence.py: Online window and idle threshold
- test_cleanup.py: Cascading user deletion, logout and the idle sweep
- test_tasks.py: Celery task wrappers
- test_views.py: REST API endpoint tests

Usage:
    pytest app/chat/tests/
    pytest app/chat/tests/test_cleanup.py
"""
