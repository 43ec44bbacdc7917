"""
OneDrive Upload Provider
========================
OneDrive provider talking to Microsoft Graph with requests.

Uses the public-client authorization code flow with PKCE; the redirect is
caught by the local callback server. Captures land in the app folder.
"""

import logging
import os
from typing import Callable, Optional
from urllib.parse import quote

import requests

from .base import BaseUploadProvider
from ..config.constants import (
    CALLBACK_PORT,
    HTTP_TIMEOUT_SECONDS,
    ONEDRIVE_AUTH_URL,
    ONEDRIVE_CLIENT_ID_ENV,
    ONEDRIVE_GRAPH_URL,
    ONEDRIVE_SCOPES,
    ONEDRIVE_TOKEN_URL,
    PROVIDER_ONEDRIVE,
    TRANSFER_TIMEOUT_SECONDS,
)
from ..errors import AuthError, UploadError
from ..utils.file_utils import get_content_type_for_file
from ..utils.oauth import (
    build_authorize_url,
    exchange_token,
    new_pkce_pair,
    new_state_token,
    redirect_uri_for_port,
    wait_for_authorization_code,
)

logger = logging.getLogger(__name__)


class OneDriveProvider(BaseUploadProvider):
    """
    OneDrive upload provider.

    Saved state: {"client_id": ..., "refresh_token": ...}
    Microsoft may rotate the refresh token on every use; a rotated token
    is returned from register() so it gets persisted.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        callback_port: int = CALLBACK_PORT,
        prompt: Optional[Callable[[str], str]] = None,
        authorize: Callable[..., str] = wait_for_authorization_code,
    ):
        super().__init__(prompt)
        self.client_id = client_id or os.getenv(ONEDRIVE_CLIENT_ID_ENV)
        self.callback_port = callback_port
        self.session = requests.Session()
        self._authorize_code = authorize

    def register(self, saved_state: Optional[str], interactive: bool) -> str:
        state = self.load_state(saved_state)

        if state.get('refresh_token'):
            try:
                return self._refresh(saved_state, state)
            except AuthError as e:
                if not interactive:
                    raise
                logger.info(f"Saved OneDrive token rejected, starting authorization: {e}")

        if not interactive:
            raise AuthError("No saved OneDrive token")

        return self._authorize()

    def _authorize(self) -> str:
        if not self.client_id:
            raise AuthError(f"OneDrive client not configured ({ONEDRIVE_CLIENT_ID_ENV})")

        redirect_uri = redirect_uri_for_port(self.callback_port)
        verifier, challenge = new_pkce_pair()
        csrf_state = new_state_token()
        auth_url = build_authorize_url(ONEDRIVE_AUTH_URL, {
            'client_id': self.client_id,
            'redirect_uri': redirect_uri,
            'response_type': 'code',
            'response_mode': 'query',
            'scope': ' '.join(ONEDRIVE_SCOPES),
            'code_challenge': challenge,
            'code_challenge_method': 'S256',
            'state': csrf_state,
        })

        code = self._authorize_code(auth_url, self.callback_port, state=csrf_state)
        token_data = exchange_token(ONEDRIVE_TOKEN_URL, {
            'grant_type': 'authorization_code',
            'client_id': self.client_id,
            'code': code,
            'redirect_uri': redirect_uri,
            'code_verifier': verifier,
            'scope': ' '.join(ONEDRIVE_SCOPES),
        })

        if not token_data.get('refresh_token'):
            raise AuthError("OneDrive did not return a refresh token")

        self._use_token(token_data['access_token'])
        logger.info("Authorized OneDrive")
        return self.dump_state({'client_id': self.client_id, 'refresh_token': token_data['refresh_token']})

    def _refresh(self, saved_state: str, state: dict) -> str:
        client_id = state.get('client_id') or self.client_id
        if not client_id:
            raise AuthError(f"OneDrive client not configured ({ONEDRIVE_CLIENT_ID_ENV})")

        token_data = exchange_token(ONEDRIVE_TOKEN_URL, {
            'grant_type': 'refresh_token',
            'client_id': client_id,
            'refresh_token': state['refresh_token'],
            'scope': ' '.join(ONEDRIVE_SCOPES),
        })
        self._use_token(token_data['access_token'])
        logger.info("Connected to OneDrive")

        new_refresh_token = token_data.get('refresh_token')
        if not new_refresh_token or new_refresh_token == state['refresh_token']:
            return saved_state
        return self.dump_state({'client_id': client_id, 'refresh_token': new_refresh_token})

    def _use_token(self, access_token: str) -> None:
        self.session.headers['Authorization'] = f"Bearer {access_token}"
        self._connected = True

    def upload(self, name: str, data: bytes) -> str:
        if not self._connected:
            raise UploadError("Not connected to OneDrive")

        upload_url = f"{ONEDRIVE_GRAPH_URL}/me/drive/special/approot:/{quote(name)}:/content"

        try:
            response = self.session.put(
                upload_url,
                data=data,
                params={'@microsoft.graph.conflictBehavior': 'rename'},
                headers={'Content-Type': get_content_type_for_file(name)},
                timeout=TRANSFER_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            item_id = response.json()['id']

            response = self.session.post(
                f"{ONEDRIVE_GRAPH_URL}/me/drive/items/{item_id}/createLink",
                json={'type': 'view', 'scope': 'anonymous'},
                timeout=HTTP_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            url = response.json()['link']['webUrl']
        except requests.exceptions.RequestException as e:
            raise UploadError(f"OneDrive upload failed: {e}")
        except (KeyError, ValueError) as e:
            raise UploadError(f"Unexpected OneDrive response: {e}")

        logger.info(f"Uploaded to OneDrive: {name}")
        return url

    def get_provider_type(self) -> str:
        return PROVIDER_ONEDRIVE

    def get_provider_name(self) -> str:
        return "OneDrive"
