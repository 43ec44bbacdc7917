"""
SharpCrop Core - Google Drive Upload Provider
=============================================
Google Drive provider using OAuth2 with a localhost redirect.

Features:
- Authorization code flow caught by the local callback server
- Silent token refresh from the saved refresh token
- Resumable uploads for large recordings
- Files shared as 'anyone with the link can view'
"""

import io
import logging
import os
from typing import Callable, Optional

from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload
from requests.exceptions import RequestException

from .base import BaseUploadProvider
from ..config.constants import (
    CALLBACK_PORT,
    GOOGLE_AUTH_URL,
    GOOGLE_CLIENT_ID_ENV,
    GOOGLE_CLIENT_SECRET_ENV,
    GOOGLE_DRIVE_SCOPES,
    GOOGLE_TOKEN_URL,
    PROVIDER_GOOGLE_DRIVE,
    UPLOAD_CHUNK_SIZE,
)
from ..errors import AuthError, UploadError
from ..utils.file_utils import get_content_type_for_file
from ..utils.oauth import (
    build_authorize_url,
    exchange_token,
    new_state_token,
    redirect_uri_for_port,
    wait_for_authorization_code,
)

logger = logging.getLogger(__name__)


class GoogleDriveProvider(BaseUploadProvider):
    """
    Google Drive upload provider.

    Saved state: {"client_id", "client_secret", "refresh_token", "token_uri", "scopes"}
    Access tokens are never persisted; they are refreshed on every load.
    """

    SCOPES = list(GOOGLE_DRIVE_SCOPES)

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        callback_port: int = CALLBACK_PORT,
        prompt: Optional[Callable[[str], str]] = None,
        authorize: Callable[..., str] = wait_for_authorization_code,
    ):
        super().__init__(prompt)
        self.client_id = client_id or os.getenv(GOOGLE_CLIENT_ID_ENV)
        self.client_secret = client_secret or os.getenv(GOOGLE_CLIENT_SECRET_ENV)
        self.callback_port = callback_port
        self.credentials: Optional[Credentials] = None
        self._authorize_code = authorize

    def register(self, saved_state: Optional[str], interactive: bool) -> str:
        state = self.load_state(saved_state)

        if state.get('refresh_token'):
            try:
                self._connect(state)
                return saved_state
            except AuthError as e:
                if not interactive:
                    raise
                logger.info(f"Saved Google Drive token rejected, starting authorization: {e}")

        if not interactive:
            raise AuthError("No saved Google Drive token")

        return self._authorize()

    def _authorize(self) -> str:
        if not self.client_id or not self.client_secret:
            raise AuthError(
                f"Google client not configured ({GOOGLE_CLIENT_ID_ENV}, {GOOGLE_CLIENT_SECRET_ENV})"
            )

        redirect_uri = redirect_uri_for_port(self.callback_port)
        csrf_state = new_state_token()
        auth_url = build_authorize_url(GOOGLE_AUTH_URL, {
            'client_id': self.client_id,
            'redirect_uri': redirect_uri,
            'response_type': 'code',
            'scope': ' '.join(self.SCOPES),
            'access_type': 'offline',
            'prompt': 'consent',
            'state': csrf_state,
        })

        code = self._authorize_code(auth_url, self.callback_port, state=csrf_state)
        token_data = exchange_token(GOOGLE_TOKEN_URL, {
            'grant_type': 'authorization_code',
            'code': code,
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'redirect_uri': redirect_uri,
        })

        if not token_data.get('refresh_token'):
            raise AuthError("Google did not return a refresh token")

        state = {
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'refresh_token': token_data['refresh_token'],
            'token_uri': GOOGLE_TOKEN_URL,
            'scopes': self.SCOPES,
        }
        self.credentials = Credentials(
            token=token_data['access_token'],
            refresh_token=state['refresh_token'],
            token_uri=GOOGLE_TOKEN_URL,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.SCOPES,
        )
        self._connected = True
        logger.info("Authorized Google Drive")
        return self.dump_state(state)

    def _connect(self, state: dict) -> None:
        try:
            credentials = Credentials.from_authorized_user_info(state, state.get('scopes') or self.SCOPES)
            credentials.refresh(Request())
        except RefreshError as e:
            self._connected = False
            raise AuthError(f"Google Drive token refresh failed: {e}")
        except (GoogleAuthError, ValueError) as e:
            self._connected = False
            raise AuthError(f"Google Drive connection error: {e}")

        self.credentials = credentials
        self._connected = True
        logger.info("Connected to Google Drive")

    def upload(self, name: str, data: bytes) -> str:
        if not self._connected:
            raise UploadError("Not connected to Google Drive")

        media = MediaIoBaseUpload(
            io.BytesIO(data),
            mimetype=get_content_type_for_file(name),
            chunksize=UPLOAD_CHUNK_SIZE,
            resumable=len(data) > UPLOAD_CHUNK_SIZE,
        )

        try:
            service = build('drive', 'v3', credentials=self.credentials, cache_discovery=False)
            created = service.files().create(
                body={'name': name},
                media_body=media,
                fields='id, webViewLink',
            ).execute()

            service.permissions().create(
                fileId=created['id'],
                body={'type': 'anyone', 'role': 'reader'},
            ).execute()
        except (HttpError, GoogleAuthError, RequestException, OSError) as e:
            raise UploadError(f"Google Drive upload failed: {e}")

        logger.info(f"Uploaded to Google Drive: {name} ({created['id']})")
        return created.get('webViewLink') or f"https://drive.google.com/file/d/{created['id']}/view"

    def get_provider_type(self) -> str:
        return PROVIDER_GOOGLE_DRIVE

    def get_provider_name(self) -> str:
        return "Google Drive"
