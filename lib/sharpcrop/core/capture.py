"""
Capture Completion
==================
Turns an encoded capture into a URL on the clipboard: names the capture,
hands it to the orchestrator and concludes with one final message.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from ..notifications.base import CAPTURE_FAILED, UPLOAD_COMPLETED, UPLOAD_SAVED_LOCALLY
from ..utils.file_utils import generate_capture_name
from .orchestrator import UploadOrchestrator

logger = logging.getLogger(__name__)


class CaptureSession:
    """
    Completes capture events produced by the capture/encoder layer.

    Args:
        orchestrator: Loaded provider registry
        clipboard: Receives the canonical URL (skipped when settings.no_copy)
    """

    def __init__(
        self,
        orchestrator: UploadOrchestrator,
        clipboard: Optional[Callable[[str], None]] = None,
    ):
        self.orchestrator = orchestrator
        self.settings = orchestrator.settings
        self.notifier = orchestrator.notifier
        self.clipboard = clipboard

    def start(self) -> bool:
        """
        Prepare for the first capture.

        With load_on_startup set, saved providers are loaded now instead of
        when the first capture completes.

        Returns:
            True if providers were loaded and at least one is ready
        """
        if not self.settings.load_on_startup:
            return False
        logger.info("Loading providers on startup")
        return self.orchestrator.init_providers()

    def complete(
        self,
        data: bytes,
        extension: str,
        name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[str]:
        """
        Upload one capture and report the outcome.

        Args:
            data: Encoded capture
            extension: Format of the capture ('png', 'gif', 'mp4'...)
            name: Explicit filename, generated from the time if omitted
            now: Timestamp for the generated name

        Returns:
            Canonical URL, None if nothing was uploaded

        Raises:
            LocalIOError: If the capture could not even be saved locally
        """
        name = name or generate_capture_name(extension, now)
        url = self.orchestrator.upload_all(name, data)
        self.finish(url)
        return url

    def finish(self, url: Optional[str]) -> None:
        """Copy the URL and show the final message of a capture."""
        if not url:
            local_path = self.orchestrator.last_local_path
            if local_path:
                self.notifier.notify(
                    UPLOAD_SAVED_LOCALLY,
                    "Upload failed! File was saved locally.",
                    "WARNING",
                    {'path': local_path},
                )
            else:
                self.notifier.notify(CAPTURE_FAILED, "Upload failed!", "ERROR")
            return

        if not self.settings.no_copy and self.clipboard is not None:
            try:
                self.clipboard(url)
            except Exception as e:
                logger.warning(f"Could not copy URL to clipboard: {e}")

        self.notifier.notify(UPLOAD_COMPLETED, "Upload completed!", "INFO", {'url': url})
