"""
Provider Factory
================
Static registry mapping provider names to factories.

The registry is enumerable (order matches PROVIDER_NAMES) and selectable at
runtime by name.
"""

from typing import Any, Callable, Dict, List

from .base import BaseUploadProvider
from .dropbox_provider import DropboxProvider
from .google_drive_provider import GoogleDriveProvider
from .onedrive_provider import OneDriveProvider
from .ftp_provider import FTPProvider
from .local_file_provider import LocalFileProvider

from ..config.constants import (
    PROVIDER_DROPBOX,
    PROVIDER_GOOGLE_DRIVE,
    PROVIDER_ONEDRIVE,
    PROVIDER_FTP,
    PROVIDER_LOCAL_FILE,
)


ProviderFactoryFn = Callable[..., BaseUploadProvider]


class ProviderFactory:
    """
    Factory for creating upload provider instances.

    Usage:
        provider = ProviderFactory.create("Dropbox")
        state = provider.register(saved_state, interactive=False)
    """

    # Registered provider factories
    _providers: Dict[str, ProviderFactoryFn] = {
        PROVIDER_DROPBOX: DropboxProvider,
        PROVIDER_GOOGLE_DRIVE: GoogleDriveProvider,
        PROVIDER_ONEDRIVE: OneDriveProvider,
        PROVIDER_FTP: FTPProvider,
        PROVIDER_LOCAL_FILE: LocalFileProvider,
    }

    @classmethod
    def create(cls, name: str, **options: Any) -> BaseUploadProvider:
        """
        Create a provider instance (not yet registered).

        Args:
            name: Provider name ('Dropbox', 'GoogleDrive', ...)
            **options: Constructor arguments (e.g. callback_port)

        Returns:
            New provider instance

        Raises:
            ValueError: If provider name unknown
            TypeError: If the factory does not build a BaseUploadProvider
        """
        if name not in cls._providers:
            supported = ", ".join(cls._providers.keys())
            raise ValueError(
                f"Unknown provider: '{name}'. "
                f"Supported: {supported}"
            )

        provider = cls._providers[name](**options)
        if not isinstance(provider, BaseUploadProvider):
            raise TypeError(f"Factory for '{name}' did not return a BaseUploadProvider")
        return provider

    @classmethod
    def get_supported_providers(cls) -> List[str]:
        """Get list of supported provider names, in registry order."""
        return list(cls._providers.keys())

    @classmethod
    def is_provider_supported(cls, name: str) -> bool:
        """Check if a provider name is registered."""
        return name in cls._providers

    @classmethod
    def register_provider(cls, name: str, factory: ProviderFactoryFn) -> None:
        """
        Register a new provider factory.

        Args:
            name: Provider name (unique key)
            factory: Callable returning a BaseUploadProvider; receives the
                options given to create()
        """
        if not callable(factory):
            raise TypeError("Provider factory must be callable")
        cls._providers[name] = factory

    @classmethod
    def unregister_provider(cls, name: str) -> None:
        """Remove a provider factory (no-op if unknown)."""
        cls._providers.pop(name, None)
