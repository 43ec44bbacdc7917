"""
SharpCrop Core - Constants and Configuration
============================================
Shared constants, provider identifiers and default values
for the capture upload pipeline.
"""

from typing import Dict, Tuple

# Version identifier for SharpCrop Core
SHARED_VERSION = "1.0.0"

# =============================================================================
# PROVIDER IDENTIFIERS
# =============================================================================

PROVIDER_DROPBOX: str = "Dropbox"
PROVIDER_GOOGLE_DRIVE: str = "GoogleDrive"
PROVIDER_ONEDRIVE: str = "OneDrive"
PROVIDER_FTP: str = "FTP"
PROVIDER_LOCAL_FILE: str = "LocalFile"

# Registry order (also the order the configuration UI lists them in)
PROVIDER_NAMES: Tuple[str, ...] = (
    PROVIDER_DROPBOX,
    PROVIDER_GOOGLE_DRIVE,
    PROVIDER_ONEDRIVE,
    PROVIDER_FTP,
    PROVIDER_LOCAL_FILE,
)

# Human-readable names used in notifications (overridable in settings)
PROVIDER_DISPLAY_NAMES: Dict[str, str] = {
    PROVIDER_DROPBOX: "Dropbox",
    PROVIDER_GOOGLE_DRIVE: "Google Drive",
    PROVIDER_ONEDRIVE: "OneDrive",
    PROVIDER_FTP: "FTP",
    PROVIDER_LOCAL_FILE: "Local File",
}

# =============================================================================
# CAPTURE CONFIGURATION
# =============================================================================

# Timestamp pattern for generated capture names
CAPTURE_NAME_FORMAT: str = "%Y_%m_%d_%H_%M_%S"

CONTENT_TYPE_MAPPING: Dict[str, str] = {
    'png': 'image/png',
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'bmp': 'image/bmp',
    'gif': 'image/gif',
    'mp4': 'video/mp4',
}

# =============================================================================
# UPLOAD CONFIGURATION
# =============================================================================

# Chunk size for large file uploads (bytes)
UPLOAD_CHUNK_SIZE: int = 8 * 1024 * 1024  # 8MB

# Timeout for single HTTP calls made by providers (seconds)
HTTP_TIMEOUT_SECONDS: int = 30

# Timeout for file transfers (seconds)
TRANSFER_TIMEOUT_SECONDS: int = 300

# =============================================================================
# SETTINGS / ENVIRONMENT
# =============================================================================

SETTINGS_PATH: str = "Settings.json"
SETTINGS_PATH_ENV: str = "SHARPCROP_SETTINGS_PATH"
ENCRYPTION_KEY_ENV: str = "SHARPCROP_ENCRYPTION_KEY"

DROPBOX_APP_KEY_ENV: str = "SHARPCROP_DROPBOX_APP_KEY"
GOOGLE_CLIENT_ID_ENV: str = "SHARPCROP_GOOGLE_CLIENT_ID"
GOOGLE_CLIENT_SECRET_ENV: str = "SHARPCROP_GOOGLE_CLIENT_SECRET"
ONEDRIVE_CLIENT_ID_ENV: str = "SHARPCROP_ONEDRIVE_CLIENT_ID"

# =============================================================================
# CALLBACK SERVER
# =============================================================================

CALLBACK_PORT: int = 50000
CALLBACK_TIMEOUT_SECONDS: int = 300
CALLBACK_BUFFER_SIZE: int = 16 * 1024

CALLBACK_MIME_TYPES: Dict[str, str] = {
    '.html': 'text/html',
}

CALLBACK_INDEX_FILES: Tuple[str, ...] = ('index.html',)

# Providers that catch an OAuth redirect on the callback port
CALLBACK_PROVIDERS: Tuple[str, ...] = (PROVIDER_GOOGLE_DRIVE, PROVIDER_ONEDRIVE)

# =============================================================================
# API ENDPOINTS
# =============================================================================

GOOGLE_AUTH_URL: str = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL: str = "https://oauth2.googleapis.com/token"
GOOGLE_DRIVE_SCOPES: Tuple[str, ...] = ('https://www.googleapis.com/auth/drive.file',)

ONEDRIVE_AUTH_URL: str = "https://login.microsoftonline.com/common/oauth2/v2.0/authorize"
ONEDRIVE_TOKEN_URL: str = "https://login.microsoftonline.com/common/oauth2/v2.0/token"
ONEDRIVE_GRAPH_URL: str = "https://graph.microsoft.com/v1.0"
ONEDRIVE_SCOPES: Tuple[str, ...] = ('Files.ReadWrite.AppFolder', 'offline_access')
