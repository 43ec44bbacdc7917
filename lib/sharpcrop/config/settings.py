"""
Settings Persistence
====================
Loads and saves the application settings file (JSON).

Only the fields read or written by the upload core are declared here; any
other keys found in the file (capture UI options) are kept untouched and
written back on save.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from .constants import (
    PROVIDER_DISPLAY_NAMES,
    SETTINGS_PATH,
    SETTINGS_PATH_ENV,
    CALLBACK_PORT,
)

logger = logging.getLogger(__name__)


DEFAULT_SETTINGS: Dict[str, Any] = {
    # Provider name -> saved credential blob
    'providers': {},
    # Provider whose URL is copied when several uploads succeed
    'provider_to_copy': '',
    'no_copy': False,
    'load_on_startup': False,
    # Where captures go when nothing could be uploaded
    'fallback_dir': '',
    # Seconds, None disables the timeout
    'upload_timeout': None,
    'save_on_upload_failure': True,
    'notification_level': 'standard',
    'webhook_url': '',
    'callback_port': CALLBACK_PORT,
    'provider_display_names': {},
}


def get_settings_path() -> str:
    """Settings file location, SHARPCROP_SETTINGS_PATH wins over the default."""
    return os.getenv(SETTINGS_PATH_ENV) or SETTINGS_PATH


class Settings:
    """
    In-memory view of the settings file.

    Usage:
        settings = Settings.load()
        settings.provider_to_copy = "Dropbox"
        settings.save()
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None, path: Optional[str] = None):
        self.path = path
        self._data = json.loads(json.dumps(DEFAULT_SETTINGS))
        if data:
            self._data.update(data)
        if not isinstance(self._data.get('providers'), dict):
            logger.warning("Settings 'providers' is not a mapping, resetting it")
            self._data['providers'] = {}

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Settings":
        """
        Load settings from disk, falling back to defaults.

        A missing, unreadable or malformed file never fails the application;
        the defaults are used and the problem is logged.
        """
        path = path or get_settings_path()

        if not os.path.isfile(path):
            logger.debug(f"Settings file not found at {path}, using defaults")
            return cls(path=path)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading settings from {path}: {e}")
            return cls(path=path)

        if not isinstance(loaded, dict):
            logger.warning("Settings file is not a dict, using defaults")
            return cls(path=path)

        logger.info(f"Settings loaded from {path}")
        return cls(loaded, path=path)

    def save(self) -> None:
        """
        Write settings to disk atomically (temp file + replace).

        Raises:
            OSError: If the file cannot be written
        """
        path = self.path or get_settings_path()
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)

        tmp_path = f"{path}.tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(self._data, f, indent=4)
        os.replace(tmp_path, path)
        logger.debug(f"Settings saved to {path}")

    def to_dict(self) -> Dict[str, Any]:
        return json.loads(json.dumps(self._data))

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    @property
    def providers(self) -> Dict[str, str]:
        """Live mapping of provider name -> stored credential blob."""
        return self._data['providers']

    @property
    def provider_to_copy(self) -> str:
        return self._data.get('provider_to_copy') or ''

    @provider_to_copy.setter
    def provider_to_copy(self, value: str) -> None:
        self._data['provider_to_copy'] = value

    @property
    def no_copy(self) -> bool:
        return bool(self._data.get('no_copy'))

    @property
    def load_on_startup(self) -> bool:
        return bool(self._data.get('load_on_startup'))

    @property
    def fallback_dir(self) -> str:
        return self._data.get('fallback_dir') or os.getcwd()

    @property
    def upload_timeout(self) -> Optional[float]:
        value = self._data.get('upload_timeout')
        if value in (None, '', 0):
            return None
        try:
            timeout = float(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid upload_timeout {value!r}")
            return None
        if not timeout > 0:
            logger.warning(f"Ignoring non-positive upload_timeout {value!r}")
            return None
        return timeout

    @property
    def save_on_upload_failure(self) -> bool:
        return bool(self._data.get('save_on_upload_failure', True))

    @property
    def notification_level(self) -> str:
        return self._data.get('notification_level') or 'standard'

    @property
    def webhook_url(self) -> str:
        return self._data.get('webhook_url') or ''

    @property
    def callback_port(self) -> int:
        value = self._data.get('callback_port') or CALLBACK_PORT
        try:
            port = int(value)
        except (TypeError, ValueError):
            port = -1
        if not 0 < port < 65536:
            logger.warning(f"Ignoring invalid callback_port {value!r}, using {CALLBACK_PORT}")
            return CALLBACK_PORT
        return port

    def display_name(self, provider_name: str) -> str:
        """Name shown to the user for a provider."""
        overrides = self._data.get('provider_display_names') or {}
        return overrides.get(provider_name) or PROVIDER_DISPLAY_NAMES.get(provider_name, provider_name)
