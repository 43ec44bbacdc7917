"""
Configuration module - Settings, credentials and constants management.
"""

from .credentials import (
    CredentialStore,
    generate_fernet_key,
    get_encryption_key,
    encrypt_credential,
    decrypt_credential,
    mask_credential,
    mask_credentials,
)

from .settings import (
    Settings,
    DEFAULT_SETTINGS,
    get_settings_path,
)

from .constants import (
    SHARED_VERSION,
    PROVIDER_NAMES,
    PROVIDER_DISPLAY_NAMES,
    # Provider identifiers
    PROVIDER_DROPBOX,
    PROVIDER_GOOGLE_DRIVE,
    PROVIDER_ONEDRIVE,
    PROVIDER_FTP,
    PROVIDER_LOCAL_FILE,
    # Capture
    CAPTURE_NAME_FORMAT,
    CONTENT_TYPE_MAPPING,
)

__all__ = [
    # Credentials
    "CredentialStore",
    "generate_fernet_key",
    "get_encryption_key",
    "encrypt_credential",
    "decrypt_credential",
    "mask_credential",
    "mask_credentials",
    # Settings
    "Settings",
    "DEFAULT_SETTINGS",
    "get_settings_path",
    # Constants
    "SHARED_VERSION",
    "PROVIDER_NAMES",
    "PROVIDER_DISPLAY_NAMES",
    "PROVIDER_DROPBOX",
    "PROVIDER_GOOGLE_DRIVE",
    "PROVIDER_ONEDRIVE",
    "PROVIDER_FTP",
    "PROVIDER_LOCAL_FILE",
    "CAPTURE_NAME_FORMAT",
    "CONTENT_TYPE_MAPPING",
]
