"""
Webhook Notifier
================
Forwards notifications as JSON to a webhook (chat integration, home
automation...). Delivery happens on a background thread so the upload core
is never held up by a slow endpoint.
"""

import logging
import threading
import time
from typing import Any, Dict

import requests

from ..config.constants import SHARED_VERSION
from ..config.settings import Settings
from .base import BaseNotifier, LogNotifier

logger = logging.getLogger(__name__)


class WebhookNotifier(BaseNotifier):
    """
    Posts every accepted notification to a webhook, and logs it too.

    Usage:
        notifier = WebhookNotifier(
            callback_webhook="https://...",
            notification_level="minimal",
        )
        notifier.notify("upload_completed", "Upload completed!")
    """

    def __init__(
        self,
        callback_webhook: str,
        notification_level: str = "standard",
        version: str = SHARED_VERSION,
        timeout: float = 10,
    ):
        super().__init__(notification_level)
        self.callback_webhook = callback_webhook
        self.version = version
        self.timeout = timeout
        self._log = LogNotifier("verbose")

    def _deliver(self, event: str, message: str, log_level: str, extra_data: Dict[str, Any]) -> None:
        self._log.notify(event, message, log_level)

        payload = {
            'event': event,
            'message': message,
            'log_level': log_level,
            'timestamp': time.time(),
            'version': self.version,
        }
        payload.update(extra_data)

        thread = threading.Thread(
            target=self._post,
            args=(event, payload),
            name=f"webhook-{event}",
            daemon=True,
        )
        thread.start()

    def _post(self, event: str, payload: Dict[str, Any]) -> bool:
        try:
            response = requests.post(
                self.callback_webhook,
                json=payload,
                timeout=self.timeout,
                headers={'Content-Type': 'application/json'}
            )
            logger.debug(f"Webhook notification sent: {event} ({response.status_code})")
            return response.status_code < 400
        except requests.exceptions.RequestException as e:
            logger.warning(f"Failed to send webhook notification '{event}': {e}")
            return False


def create_notifier(settings: Settings) -> BaseNotifier:
    """
    Notifier matching the settings: webhook if configured, log otherwise.
    """
    if settings.webhook_url:
        return WebhookNotifier(
            callback_webhook=settings.webhook_url,
            notification_level=settings.notification_level,
        )
    return LogNotifier(settings.notification_level)
