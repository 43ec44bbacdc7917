"""
Local File Provider
===================
"Uploads" captures by copying them into a folder, e.g. a synced folder of
a desktop cloud client. The URL is the file:// URI of the copy.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Optional

from .base import BaseUploadProvider
from ..config.constants import PROVIDER_LOCAL_FILE
from ..errors import AuthError, LocalIOError, UploadError
from ..utils.file_utils import write_local_file

logger = logging.getLogger(__name__)


class LocalFileProvider(BaseUploadProvider):
    """
    Local folder provider.

    Saved state: the absolute folder path (plain string, not JSON).
    """

    def __init__(self, prompt: Optional[Callable[[str], str]] = None):
        super().__init__(prompt)
        self.folder: Optional[str] = None

    def register(self, saved_state: Optional[str], interactive: bool) -> str:
        if saved_state and os.path.isdir(saved_state):
            self._use_folder(saved_state)
            return saved_state

        if not interactive:
            raise AuthError(f"Saved folder does not exist: {saved_state!r}")

        answer = self.ask("Folder to save captures in: ")
        if not answer:
            raise AuthError("Folder selection cancelled")

        folder = os.path.abspath(os.path.expanduser(answer))
        if not os.path.isdir(folder):
            raise AuthError(f"Not a directory: {folder}")

        self._use_folder(folder)
        return folder

    def _use_folder(self, folder: str) -> None:
        self.folder = folder
        self._connected = True
        logger.info(f"Saving captures to {folder}")

    def upload(self, name: str, data: bytes) -> str:
        if not self._connected:
            raise UploadError("No folder selected")

        try:
            path = write_local_file(self.folder, name, data)
        except LocalIOError as e:
            raise UploadError(str(e))

        return Path(path).as_uri()

    def get_provider_type(self) -> str:
        return PROVIDER_LOCAL_FILE

    def get_provider_name(self) -> str:
        return "Local File"
