"""
Dropbox Upload Provider
=======================
Dropbox implementation backed by the official SDK.

Features:
- OAuth2 PKCE flow with offline (refresh token) access
- Silent re-authentication from the saved refresh token
- Chunked uploads for large recordings
- Shared links pointing at the raw file
"""

import logging
import os
import webbrowser
from typing import Callable, Optional

import dropbox
from dropbox.exceptions import ApiError, AuthError as DropboxAuthError, DropboxException
from dropbox.files import WriteMode
from requests.exceptions import RequestException

from .base import BaseUploadProvider
from ..config.constants import (
    DROPBOX_APP_KEY_ENV,
    PROVIDER_DROPBOX,
    UPLOAD_CHUNK_SIZE,
)
from ..config.credentials import mask_credential
from ..errors import AuthError, UploadError

logger = logging.getLogger(__name__)


class DropboxProvider(BaseUploadProvider):
    """
    Dropbox upload provider.

    Saved state: {"app_key": ..., "refresh_token": ...}
    Files are stored in the app folder root under their capture name.
    """

    def __init__(
        self,
        app_key: Optional[str] = None,
        prompt: Optional[Callable[[str], str]] = None,
        open_browser: Callable[[str], bool] = webbrowser.open,
    ):
        super().__init__(prompt)
        self.app_key = app_key or os.getenv(DROPBOX_APP_KEY_ENV)
        self.client: Optional[dropbox.Dropbox] = None
        self._open_browser = open_browser

    def register(self, saved_state: Optional[str], interactive: bool) -> str:
        state = self.load_state(saved_state)

        if state.get('refresh_token'):
            try:
                self._connect(state['refresh_token'], state.get('app_key') or self.app_key)
                return saved_state
            except AuthError as e:
                if not interactive:
                    raise
                logger.info(f"Saved Dropbox token rejected, starting authorization: {e}")

        if not interactive:
            raise AuthError("No saved Dropbox token")

        return self._authorize()

    def _authorize(self) -> str:
        """Run the PKCE no-redirect flow and return the new state."""
        if not self.app_key:
            raise AuthError(f"Dropbox app key not configured ({DROPBOX_APP_KEY_ENV})")

        flow = dropbox.DropboxOAuth2FlowNoRedirect(
            self.app_key,
            use_pkce=True,
            token_access_type='offline',
        )
        authorize_url = flow.start()

        if not self._open_browser(authorize_url):
            logger.warning(f"Could not open a browser, visit manually: {authorize_url}")

        code = self.ask("Enter the Dropbox authorization code: ")
        if not code:
            raise AuthError("Dropbox authorization cancelled")

        try:
            result = flow.finish(code)
        except (DropboxException, RequestException) as e:
            raise AuthError(f"Dropbox authorization failed: {e}")

        self._connect(result.refresh_token, self.app_key)
        return self.dump_state({'app_key': self.app_key, 'refresh_token': result.refresh_token})

    def _connect(self, refresh_token: str, app_key: Optional[str]) -> None:
        if not app_key:
            raise AuthError(f"Dropbox app key not configured ({DROPBOX_APP_KEY_ENV})")

        logger.debug(f"Connecting to Dropbox with token {mask_credential(refresh_token)}")
        try:
            client = dropbox.Dropbox(oauth2_refresh_token=refresh_token, app_key=app_key)
            account = client.users_get_current_account()
        except DropboxAuthError as e:
            self._connected = False
            raise AuthError(f"Dropbox authentication failed: {e}")
        except (DropboxException, RequestException) as e:
            self._connected = False
            raise AuthError(f"Dropbox connection error: {e}")

        self.client = client
        self._connected = True
        logger.info(f"Authenticated with Dropbox as: {account.name.display_name}")

    def upload(self, name: str, data: bytes) -> str:
        if not self._connected:
            raise UploadError("Not connected to Dropbox")

        path = f"/{name}"

        try:
            if len(data) <= UPLOAD_CHUNK_SIZE:
                metadata = self.client.files_upload(data, path, mode=WriteMode('add'), autorename=True)
            else:
                metadata = self._chunked_upload(data, path)

            url = self._get_shared_link(metadata.path_lower)
        except (DropboxException, RequestException) as e:
            raise UploadError(f"Dropbox upload failed: {e}")

        logger.info(f"Uploaded to Dropbox: {metadata.path_display}")
        return url

    def _chunked_upload(self, data: bytes, path: str):
        """Upload large file using chunked session."""
        file_size = len(data)

        session = self.client.files_upload_session_start(data[:UPLOAD_CHUNK_SIZE])
        cursor = dropbox.files.UploadSessionCursor(
            session_id=session.session_id,
            offset=UPLOAD_CHUNK_SIZE,
        )
        commit = dropbox.files.CommitInfo(path=path, mode=WriteMode('add'), autorename=True)

        while file_size - cursor.offset > UPLOAD_CHUNK_SIZE:
            self.client.files_upload_session_append_v2(
                data[cursor.offset:cursor.offset + UPLOAD_CHUNK_SIZE], cursor
            )
            cursor.offset += UPLOAD_CHUNK_SIZE

        return self.client.files_upload_session_finish(data[cursor.offset:], cursor, commit)

    def _get_shared_link(self, path: str) -> str:
        try:
            link = self.client.sharing_create_shared_link_with_settings(path)
            url = link.url
        except ApiError as e:
            if not e.error.is_shared_link_already_exists():
                raise
            links = self.client.sharing_list_shared_links(path=path, direct_only=True).links
            if not links:
                raise
            url = links[0].url

        return url.replace('dl=0', 'raw=1')

    def get_provider_type(self) -> str:
        return PROVIDER_DROPBOX

    def get_provider_name(self) -> str:
        return "Dropbox"
