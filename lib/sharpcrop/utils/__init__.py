"""
Utilities module - File handling, callback server and OAuth helpers.
"""

from .file_utils import (
    generate_capture_name,
    get_file_extension,
    get_content_type_for_file,
    sanitize_filename,
    write_local_file,
)

from .http_server import (
    CallbackServer,
    CallbackRequest,
)

from .oauth import (
    wait_for_authorization_code,
    exchange_token,
    build_authorize_url,
    redirect_uri_for_port,
    new_state_token,
    new_pkce_pair,
)

__all__ = [
    # File utilities
    "generate_capture_name",
    "get_file_extension",
    "get_content_type_for_file",
    "sanitize_filename",
    "write_local_file",
    # Callback server
    "CallbackServer",
    "CallbackRequest",
    # OAuth
    "wait_for_authorization_code",
    "exchange_token",
    "build_authorize_url",
    "redirect_uri_for_port",
    "new_state_token",
    "new_pkce_pair",
]
