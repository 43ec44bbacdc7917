"""
Credentials Management
======================
Persisted provider credentials and their optional encryption at rest.

Each provider returns an opaque state string from its registration; the
CredentialStore keeps exactly that string keyed by provider name inside the
settings file. When SHARPCROP_ENCRYPTION_KEY is set, the strings are
Fernet-encrypted on disk and decrypted transparently on read.

To generate a new key:
    from cryptography.fernet import Fernet
    print(Fernet.generate_key().decode())

Or use: generate_fernet_key() from this module.
"""

import logging
import os
from typing import Any, Dict, Iterator, List, Optional, Tuple

from cryptography.fernet import Fernet

from .constants import ENCRYPTION_KEY_ENV
from .settings import Settings

logger = logging.getLogger(__name__)

# Marks blobs written encrypted, plain blobs are read as-is
ENCRYPTED_PREFIX = "enc:"


def generate_fernet_key() -> str:
    """
    Generate a new Fernet encryption key.

    Returns:
        Base64-encoded Fernet key string
    """
    return Fernet.generate_key().decode()


def get_encryption_key() -> Optional[str]:
    """Encryption key from the environment, None when encryption is off."""
    return os.getenv(ENCRYPTION_KEY_ENV) or None


def encrypt_credential(value: str, encryption_key: str) -> str:
    """
    Encrypt a single credential value.

    Raises:
        ValueError: If the key is invalid
    """
    try:
        fernet = Fernet(encryption_key.encode())
        return fernet.encrypt(value.encode()).decode()
    except Exception as e:
        raise ValueError(f"Failed to encrypt credential: {e}")


def decrypt_credential(encrypted_value: str, encryption_key: str) -> str:
    """
    Decrypt a single encrypted credential value.

    Args:
        encrypted_value: Fernet-encrypted string
        encryption_key: Fernet key string

    Returns:
        Decrypted string value

    Raises:
        ValueError: If decryption fails
    """
    try:
        fernet = Fernet(encryption_key.encode())
        return fernet.decrypt(encrypted_value.encode()).decode()
    except Exception as e:
        raise ValueError(f"Failed to decrypt credential: {e}")


def mask_credential(value: Any) -> str:
    """Masked form of a secret for safe logging."""
    if not value:
        return ""
    if isinstance(value, str) and len(value) > 8:
        return f"{value[:4]}...{value[-4:]}"
    return "***"


def mask_credentials(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a masked copy of a provider -> credential mapping for logging.

    Args:
        data: Dictionary of credential values

    Returns:
        Dictionary with every value masked
    """
    if not isinstance(data, dict):
        return data
    return {key: mask_credential(value) for key, value in data.items()}


class CredentialStore:
    """
    Provider name -> credential blob, persisted through Settings.

    The store never interprets blobs. Iteration follows the order in which
    credentials were first stored, which the orchestrator relies on.
    """

    def __init__(self, settings: Settings, encryption_key: Optional[str] = None):
        self.settings = settings
        self._encryption_key = encryption_key if encryption_key is not None else get_encryption_key()
        if self._encryption_key:
            # Fail early on a malformed key instead of on the first write
            Fernet(self._encryption_key.encode())

    @property
    def encrypted(self) -> bool:
        return bool(self._encryption_key)

    def _encode(self, blob: str) -> str:
        if not self._encryption_key:
            return blob
        return ENCRYPTED_PREFIX + encrypt_credential(blob, self._encryption_key)

    def _decode(self, name: str, stored: str) -> Optional[str]:
        if not isinstance(stored, str) or not stored.startswith(ENCRYPTED_PREFIX):
            return stored
        if not self._encryption_key:
            logger.error(f"Credential for {name} is encrypted but {ENCRYPTION_KEY_ENV} is not set")
            return None
        try:
            return decrypt_credential(stored[len(ENCRYPTED_PREFIX):], self._encryption_key)
        except ValueError as e:
            logger.error(f"Ignoring credential for {name}: {e}")
            return None

    def get(self, name: str) -> Optional[str]:
        stored = self.settings.providers.get(name)
        if stored is None:
            return None
        return self._decode(name, stored)

    def set(self, name: str, blob: str) -> None:
        """Store a blob and persist the settings file."""
        self.settings.providers[name] = self._encode(blob)
        self.settings.save()
        logger.info(f"Stored credential for {name}: {mask_credential(blob)}")

    def remove(self, name: str) -> bool:
        """Remove a credential; returns False if none was stored."""
        if name not in self.settings.providers:
            return False
        del self.settings.providers[name]
        self.settings.save()
        logger.info(f"Removed credential for {name}")
        return True

    def names(self) -> List[str]:
        return list(self.settings.providers.keys())

    def items(self) -> List[Tuple[str, str]]:
        """Readable (name, blob) pairs in stored order, undecryptable ones skipped."""
        result = []
        for name, stored in list(self.settings.providers.items()):
            blob = self._decode(name, stored)
            if blob is not None:
                result.append((name, blob))
        return result

    def __contains__(self, name: str) -> bool:
        return name in self.settings.providers

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self.settings.providers)
