"""
SharpCrop Core
==============
Upload core of the SharpCrop screen capture utility: provider registry,
concurrent fan-out of captures, URL reconciliation and the OAuth callback
server.
"""

from .config import (
    Settings,
    CredentialStore,
    generate_fernet_key,
    mask_credential,
    mask_credentials,
    SHARED_VERSION,
    PROVIDER_NAMES,
)

from .errors import (
    SharpCropError,
    AuthError,
    UploadError,
    NoProvidersError,
    LocalIOError,
)

from .providers import BaseUploadProvider, ProviderFactory

from .notifications import (
    BaseNotifier,
    LogNotifier,
    WebhookNotifier,
    NotificationLevel,
    create_notifier,
)

from .utils import CallbackServer, generate_capture_name

from .core import UploadOrchestrator, ProviderState, CaptureSession

__version__ = SHARED_VERSION

__all__ = [
    # Config
    "Settings",
    "CredentialStore",
    "generate_fernet_key",
    "mask_credential",
    "mask_credentials",
    "SHARED_VERSION",
    "PROVIDER_NAMES",
    # Errors
    "SharpCropError",
    "AuthError",
    "UploadError",
    "NoProvidersError",
    "LocalIOError",
    # Providers
    "BaseUploadProvider",
    "ProviderFactory",
    # Notifications
    "BaseNotifier",
    "LogNotifier",
    "WebhookNotifier",
    "NotificationLevel",
    "create_notifier",
    # Utils
    "CallbackServer",
    "generate_capture_name",
    # Core
    "UploadOrchestrator",
    "ProviderState",
    "CaptureSession",
]
