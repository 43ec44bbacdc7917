"""
SharpCrop Core - Upload Providers
=================================
Pluggable destinations for captures behind one interface.

Supported:
    - Dropbox (PKCE, refresh tokens, shared links)
    - Google Drive (localhost OAuth redirect)
    - OneDrive (Microsoft Graph, localhost OAuth redirect)
    - FTP (ftplib, public URL prefix)
    - LocalFile (copy into a folder)
"""

from .base import BaseUploadProvider
from .factory import ProviderFactory
from .dropbox_provider import DropboxProvider
from .google_drive_provider import GoogleDriveProvider
from .onedrive_provider import OneDriveProvider
from .ftp_provider import FTPProvider
from .local_file_provider import LocalFileProvider

__all__ = [
    "BaseUploadProvider",
    "ProviderFactory",
    "DropboxProvider",
    "GoogleDriveProvider",
    "OneDriveProvider",
    "FTPProvider",
    "LocalFileProvider",
]
