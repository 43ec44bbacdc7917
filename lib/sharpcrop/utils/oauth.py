"""
OAuth Redirect Helper
=====================
Runs the interactive part of an OAuth2 authorization code flow: opens the
provider's consent page in the browser and waits for the redirect to reach
the local callback server.
"""

import base64
import hashlib
import logging
import os
import secrets
import threading
import webbrowser
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import urlencode

import requests

from ..config.constants import CALLBACK_TIMEOUT_SECONDS, HTTP_TIMEOUT_SECONDS
from ..errors import AuthError
from .http_server import CallbackRequest, CallbackServer

logger = logging.getLogger(__name__)

# Success page served to the browser after the redirect
STATIC_ROOT = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'static')


def redirect_uri_for_port(port: int) -> str:
    return f"http://localhost:{port}/"


def build_authorize_url(base_url: str, params: Dict[str, str]) -> str:
    return f"{base_url}?{urlencode(params)}"


def new_state_token() -> str:
    """Random value for the OAuth 'state' parameter."""
    return secrets.token_urlsafe(16)


def new_pkce_pair() -> Tuple[str, str]:
    """PKCE (code_verifier, S256 code_challenge) pair."""
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode('ascii')).digest()
    challenge = base64.urlsafe_b64encode(digest).decode('ascii').rstrip('=')
    return verifier, challenge


def wait_for_authorization_code(
    auth_url: str,
    port: int,
    state: Optional[str] = None,
    timeout: float = CALLBACK_TIMEOUT_SECONDS,
    open_browser: Callable[[str], bool] = webbrowser.open,
) -> str:
    """
    Open auth_url and block until the redirect delivers a code.

    Args:
        auth_url: Fully built consent page URL
        port: Local port the redirect URI points to
        state: Expected 'state' value (requests with another value are ignored)
        timeout: Seconds to wait for the user
        open_browser: Browser launcher (replaceable in tests)

    Returns:
        The authorization code

    Raises:
        AuthError: On timeout, user denial or a server that cannot be started
    """
    received = threading.Event()
    result: Dict[str, str] = {}

    def on_request(request: CallbackRequest) -> None:
        if received.is_set():
            return
        if 'code' not in request.query and 'error' not in request.query:
            return
        if state is not None and request.query.get('state') != state:
            logger.warning("Ignoring OAuth redirect with unexpected state")
            return
        result.update(request.query)
        received.set()

    try:
        server = CallbackServer(STATIC_ROOT, port, on_request=on_request).start()
    except OSError as e:
        raise AuthError(f"Cannot listen for the OAuth redirect on port {port}: {e}")

    try:
        logger.info("Opening browser for authorization")
        if not open_browser(auth_url):
            logger.warning(f"Could not open a browser, visit manually: {auth_url}")

        if not received.wait(timeout):
            raise AuthError("Timed out waiting for authorization")
    finally:
        server.stop()

    if 'error' in result:
        raise AuthError(f"Authorization denied: {result.get('error_description') or result['error']}")

    return result['code']


def exchange_token(token_url: str, data: Dict[str, str]) -> Dict[str, str]:
    """
    POST to an OAuth2 token endpoint.

    Raises:
        AuthError: If the endpoint rejects the grant or is unreachable
    """
    try:
        response = requests.post(token_url, data=data, timeout=HTTP_TIMEOUT_SECONDS)
        response.raise_for_status()
        token_data = response.json()
    except requests.exceptions.RequestException as e:
        raise AuthError(f"Token request failed: {e}")
    except ValueError as e:
        raise AuthError(f"Invalid token response: {e}")

    if not token_data.get('access_token'):
        raise AuthError("No access token in response")

    return token_data
