"""
SharpCrop Core - Base Upload Provider
=====================================
Abstract base class for all upload providers.

A provider is a cloud (or local) destination for captures. It has its own
authentication lifecycle: register() turns a previously saved state into a
ready-to-use provider and returns the state to persist, upload() sends one
capture and returns a public URL.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from ..errors import AuthError


class BaseUploadProvider(ABC):
    """
    Abstract base class for upload providers.

    All providers (Dropbox, Google Drive, OneDrive, FTP, LocalFile) must
    implement this interface to be usable with the ProviderFactory and the
    UploadOrchestrator.

    Contract:
    - register() must not open a browser or prompt when interactive=False
    - upload() may be called concurrently with other providers' uploads on
      the same bytes object; it must not mutate it
    """

    def __init__(self, prompt: Optional[Callable[[str], str]] = None):
        """
        Args:
            prompt: Asks the user a question during interactive registration
                    and returns the answer (defaults to input())
        """
        self._prompt = prompt or input
        self._connected = False

    @abstractmethod
    def register(self, saved_state: Optional[str], interactive: bool) -> str:
        """
        Authenticate the provider.

        Args:
            saved_state: State previously returned by register(), or None
            interactive: Whether UI (browser, prompts) may be shown

        Returns:
            State to persist; may be identical to saved_state when it was
            reused without re-authentication

        Raises:
            AuthError: If authentication cannot be established
        """
        pass

    @abstractmethod
    def upload(self, name: str, data: bytes) -> str:
        """
        Upload one capture.

        Args:
            name: Capture filename (extension implies the format)
            data: Capture content

        Returns:
            Publicly reachable URL

        Raises:
            UploadError: If the transfer fails
        """
        pass

    @abstractmethod
    def get_provider_type(self) -> str:
        """
        Get provider type identifier.

        Returns:
            Registry key (e.g., 'Dropbox', 'GoogleDrive')
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """
        Get human-readable provider name.

        Returns:
            Provider name (e.g., 'Dropbox', 'Google Drive')
        """
        pass

    def is_connected(self) -> bool:
        """True once register() succeeded."""
        return self._connected

    def ask(self, question: str) -> str:
        """Prompt the user, stripped answer."""
        return (self._prompt(question) or '').strip()

    @staticmethod
    def load_state(saved_state: Optional[str]) -> Dict[str, Any]:
        """
        Parse a JSON state blob.

        Returns:
            Parsed dict, empty when saved_state is None/empty

        Raises:
            AuthError: If the blob is not a JSON object
        """
        if not saved_state:
            return {}
        try:
            state = json.loads(saved_state)
        except ValueError as e:
            raise AuthError(f"Saved state is not valid JSON: {e}")
        if not isinstance(state, dict):
            raise AuthError("Saved state is not a JSON object")
        return state

    @staticmethod
    def dump_state(state: Dict[str, Any]) -> str:
        """Serialize a state dict deterministically (equal states, equal strings)."""
        return json.dumps(state, sort_keys=True)
