"""
Notifications module - Transient user messages, logged or sent to a webhook.
"""

from .base import BaseNotifier, LogNotifier, NotificationLevel
from .webhook_notifier import WebhookNotifier, create_notifier

__all__ = [
    "BaseNotifier",
    "LogNotifier",
    "NotificationLevel",
    "WebhookNotifier",
    "create_notifier",
]
