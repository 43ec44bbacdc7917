"""
Notification Sink
=================
Fire-and-forget transient messages ("toasts") raised by the upload core,
with configurable verbosity levels.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class NotificationLevel(Enum):
    """Notification verbosity levels."""
    ERRORS_ONLY = "errors_only"  # Only errors and critical failures
    MINIMAL = "minimal"          # Capture outcome and registrations
    STANDARD = "standard"        # Everything except verbose details
    VERBOSE = "verbose"          # Everything


# Event identifiers
PROVIDER_REGISTERED = "provider_registered"
PROVIDER_REGISTER_FAILED = "provider_register_failed"
PROVIDER_LOADED = "provider_loaded"
UPLOAD_SUCCEEDED = "upload_succeeded"
UPLOAD_FAILED = "upload_failed"
UPLOAD_COMPLETED = "upload_completed"
UPLOAD_SAVED_LOCALLY = "upload_saved_locally"
CAPTURE_FAILED = "capture_failed"
LOCAL_SAVE_FAILED = "local_save_failed"


class BaseNotifier(ABC):
    """
    Base class for notification sinks.

    notify() never raises and never blocks for long: subclasses implement
    _deliver(), and any error it throws is logged and dropped.
    """

    # Always sent regardless of level
    CRITICAL_NOTIFICATIONS = frozenset([
        UPLOAD_COMPLETED, UPLOAD_SAVED_LOCALLY, CAPTURE_FAILED, LOCAL_SAVE_FAILED,
        PROVIDER_REGISTER_FAILED,
    ])

    # Minimal level allowed notifications
    MINIMAL_ALLOWED = frozenset([
        PROVIDER_REGISTERED,
    ])

    # Verbose-only notifications (skip in standard mode)
    VERBOSE_ONLY = frozenset([
        PROVIDER_LOADED, UPLOAD_SUCCEEDED,
    ])

    def __init__(self, notification_level: str = "standard"):
        try:
            self.notification_level = NotificationLevel(notification_level.lower())
        except (ValueError, AttributeError):
            self.notification_level = NotificationLevel.STANDARD

    def _should_send(self, event: str, log_level: str) -> bool:
        if log_level == "ERROR":
            return True

        if event in self.CRITICAL_NOTIFICATIONS:
            return True

        if self.notification_level == NotificationLevel.ERRORS_ONLY:
            return False

        if self.notification_level == NotificationLevel.MINIMAL:
            return event in self.MINIMAL_ALLOWED

        if self.notification_level == NotificationLevel.STANDARD:
            return event not in self.VERBOSE_ONLY

        return True

    def notify(
        self,
        event: str,
        message: str,
        log_level: str = "INFO",
        extra_data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Show a transient message.

        Args:
            event: Event identifier (e.g., 'upload_failed')
            message: Text for the user
            log_level: INFO, WARNING or ERROR
            extra_data: Additional context (provider name, file name...)

        Returns:
            True if the message was handed to the sink
        """
        if not self._should_send(event, log_level):
            return False

        try:
            self._deliver(event, message, log_level, extra_data or {})
            return True
        except Exception as e:
            logger.warning(f"Failed to deliver notification '{event}': {e}")
            return False

    @abstractmethod
    def _deliver(self, event: str, message: str, log_level: str, extra_data: Dict[str, Any]) -> None:
        """Hand one message to the sink; may raise."""
        pass


class LogNotifier(BaseNotifier):
    """Writes notifications to the application log."""

    def _deliver(self, event: str, message: str, log_level: str, extra_data: Dict[str, Any]) -> None:
        level = logging.getLevelName(log_level)
        if not isinstance(level, int):
            level = logging.INFO
        logger.log(level, f"[{event}] {message}")
