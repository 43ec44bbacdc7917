"""
SharpCrop Core - Errors
=======================
Exception hierarchy shared by providers, the orchestrator and the CLI.

Provider level errors (AuthError, UploadError) never leave the orchestrator;
they are turned into notifications. LocalIOError is the only one that reaches
the caller, because there is no fallback left once the local save fails.
"""


class SharpCropError(Exception):
    """Base class for all SharpCrop errors."""


class AuthError(SharpCropError, ConnectionError):
    """Provider registration failed (bad/expired credential, network, user cancel)."""


class UploadError(SharpCropError, IOError):
    """Transfer failed after successful authentication."""


class NoProvidersError(SharpCropError):
    """Not a single provider could be loaded."""


class LocalIOError(SharpCropError, OSError):
    """Writing the fallback file to local disk failed."""
