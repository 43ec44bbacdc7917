"""
Upload Orchestrator
===================
Keeps the set of loaded providers and fans every capture out to all of them.

Lifecycle of a provider name within one process:

    NOT_ATTEMPTED -> (register) -> LOADED | FAILED
    LOADED/FAILED -> clear_provider() -> NOT_ATTEMPTED (credential deleted)

A FAILED provider is not retried by init_providers(); only an explicit
register_provider() (interactive) or clear_provider() resets it.

Threading model:
- Provider register()/upload() calls run on ThreadPoolExecutor workers,
  started together and joined together.
- Workers never touch the loaded-provider map or the credential store; the
  calling thread records every result after the join, in credential-store
  order, so the map's iteration order does not depend on completion timing.
- A lock guards the map, but registration and upload fan-out are assumed not
  to run at the same time (one capture session at a time).
"""

import logging
import threading
from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..config.constants import CALLBACK_PROVIDERS
from ..config.credentials import CredentialStore
from ..config.settings import Settings
from ..errors import LocalIOError, NoProvidersError
from ..notifications import BaseNotifier, create_notifier
from ..notifications.base import (
    LOCAL_SAVE_FAILED,
    PROVIDER_LOADED,
    PROVIDER_REGISTERED,
    PROVIDER_REGISTER_FAILED,
    UPLOAD_FAILED,
    UPLOAD_SUCCEEDED,
)
from ..providers.base import BaseUploadProvider
from ..providers.factory import ProviderFactory
from ..utils.file_utils import write_local_file

logger = logging.getLogger(__name__)


class ProviderState(Enum):
    """Per-name provider state within the current process."""
    NOT_ATTEMPTED = "not_attempted"
    LOADED = "loaded"
    FAILED = "failed"


# (provider instance or None, state returned by register or None)
RegisterResult = Tuple[Optional[BaseUploadProvider], Optional[str]]


class UploadOrchestrator:
    """
    Provider registry and capture fan-out.

    Usage:
        orchestrator = UploadOrchestrator(Settings.load())
        orchestrator.init_providers()
        url = orchestrator.upload_all("2024_05_01_13_37_00.png", data)

    Args:
        settings: Application settings (preferred provider, fallback dir...)
        credentials: Credential store (defaults to one backed by settings)
        notifier: Notification sink (defaults to create_notifier(settings))
        factory: Object with create(name, **options) -> BaseUploadProvider
    """

    def __init__(
        self,
        settings: Settings,
        credentials: Optional[CredentialStore] = None,
        notifier: Optional[BaseNotifier] = None,
        factory=ProviderFactory,
    ):
        self.settings = settings
        self.credentials = credentials if credentials is not None else CredentialStore(settings)
        self.notifier = notifier if notifier is not None else create_notifier(settings)
        self.factory = factory

        # None marks a provider that failed to load
        self._loaded: Dict[str, Optional[BaseUploadProvider]] = {}
        self._lock = threading.RLock()

        # Path of the last local fallback written by upload_all()
        self.last_local_path: Optional[str] = None

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def loaded_providers(self) -> Dict[str, Optional[BaseUploadProvider]]:
        """Snapshot of the loaded-provider map (None = failed)."""
        with self._lock:
            return dict(self._loaded)

    def get_state(self, name: str) -> ProviderState:
        with self._lock:
            if name not in self._loaded:
                return ProviderState.NOT_ATTEMPTED
            if self._loaded[name] is None:
                return ProviderState.FAILED
            return ProviderState.LOADED

    def _ready_providers(self) -> List[Tuple[str, BaseUploadProvider]]:
        with self._lock:
            return [(name, provider) for name, provider in self._loaded.items() if provider is not None]

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def _provider_options(self, name: str) -> Dict[str, Any]:
        """Constructor arguments taken from settings for one provider."""
        if name in CALLBACK_PROVIDERS:
            return {'callback_port': self.settings.callback_port}
        return {}

    def _create_and_register(self, name: str, saved_state: Optional[str], interactive: bool) -> RegisterResult:
        """
        Instantiate a provider and run its register().

        Runs on worker threads: must not mutate orchestrator state.
        Every failure is reduced to (None, None).
        """
        try:
            provider = self.factory.create(name, **self._provider_options(name))
            new_state = provider.register(saved_state, interactive)
        except Exception as e:
            logger.warning(f"Failed to register {name}: {e}", exc_info=not isinstance(e, ConnectionError))
            return None, None

        if not new_state:
            logger.warning(f"{name} returned an empty state")
            return None, None

        return provider, new_state

    def _record(
        self,
        name: str,
        saved_state: Optional[str],
        result: RegisterResult,
        interactive: bool,
    ) -> bool:
        """Apply a register() result to the map and the credential store."""
        provider, new_state = result
        display_name = self.settings.display_name(name)

        if provider is None:
            with self._lock:
                # An interactive failure leaves the previous entry alone
                if not interactive:
                    self._loaded[name] = None
            self.notifier.notify(
                PROVIDER_REGISTER_FAILED,
                f'Failed to register "{display_name}" provider!',
                "WARNING",
                {'provider': name},
            )
            return False

        with self._lock:
            self._loaded[name] = provider

        if new_state != saved_state:
            try:
                self.credentials.set(name, new_state)
            except OSError as e:
                logger.error(f"Could not persist credential for {name}: {e}")
            if interactive:
                self.notifier.notify(
                    PROVIDER_REGISTERED,
                    f'Successfully registered "{display_name}" provider!',
                    "INFO",
                    {'provider': name},
                )
        else:
            self.notifier.notify(PROVIDER_LOADED, f'Loaded "{display_name}" provider', "INFO", {'provider': name})

        return True

    def init_providers(self) -> bool:
        """
        Silently load every provider that has a saved credential.

        Providers already attempted in this process (loaded or failed) are
        skipped. All pending registrations run concurrently.

        Returns:
            True if at least one provider with a saved credential is loaded
        """
        saved = self.credentials.items()

        with self._lock:
            pending = [(name, state) for name, state in saved if name not in self._loaded]

        if pending:
            logger.info(f"Loading {len(pending)} provider(s): {', '.join(name for name, _ in pending)}")

            with ThreadPoolExecutor(max_workers=len(pending), thread_name_prefix="register") as executor:
                futures = [
                    (name, state, executor.submit(self._create_and_register, name, state, False))
                    for name, state in pending
                ]
                wait([future for _, _, future in futures], return_when=ALL_COMPLETED)

            for name, state, future in futures:
                self._record(name, state, future.result(), interactive=False)

        return any(self.get_state(name) == ProviderState.LOADED for name, _ in saved)

    def load_provider(self, name: str, saved_state: Optional[str]) -> bool:
        """
        Silently load one provider.

        Returns:
            Whether the provider is loaded; an existing entry (loaded or
            failed) is returned as-is without a new attempt
        """
        with self._lock:
            if name in self._loaded:
                return self._loaded[name] is not None

        result = self._create_and_register(name, saved_state, interactive=False)
        return self._record(name, saved_state, result, interactive=False)

    def register_provider(self, name: str) -> bool:
        """
        Interactively (re-)register a provider, showing its UI if needed.

        Returns:
            True if the provider is now loaded
        """
        saved_state = self.credentials.get(name)
        result = self._create_and_register(name, saved_state, interactive=True)
        return self._record(name, saved_state, result, interactive=True)

    def clear_provider(self, name: str) -> None:
        """Unregister a provider and delete its saved credential (idempotent)."""
        with self._lock:
            self._loaded.pop(name, None)
        self.credentials.remove(name)
        logger.info(f"Cleared provider {name}")

    # =========================================================================
    # UPLOAD
    # =========================================================================

    def _ensure_providers(self) -> None:
        self.init_providers()
        if not self._ready_providers():
            raise NoProvidersError("No provider could be loaded")

    def _upload_one(self, provider_name: str, provider: BaseUploadProvider, name: str, data: bytes) -> Optional[str]:
        """Worker: one provider upload, every failure reduced to None."""
        try:
            url = provider.upload(name, data)
        except Exception as e:
            logger.warning(f"Upload of {name} to {provider_name} failed: {e}", exc_info=not isinstance(e, IOError))
            return None
        return url or None

    def _upload_concurrently(
        self,
        targets: List[Tuple[str, BaseUploadProvider]],
        name: str,
        data: bytes,
    ) -> List[Tuple[str, Optional[str]]]:
        """Start every upload, join them all, results in target order."""
        timeout = self.settings.upload_timeout
        executor = ThreadPoolExecutor(max_workers=len(targets), thread_name_prefix="upload")

        futures = [
            (provider_name, executor.submit(self._upload_one, provider_name, provider, name, data))
            for provider_name, provider in targets
        ]
        _, not_done = wait([future for _, future in futures], timeout=timeout, return_when=ALL_COMPLETED)
        executor.shutdown(wait=not not_done)

        results = []
        for provider_name, future in futures:
            if future in not_done:
                future.cancel()
                logger.warning(f"Upload of {name} to {provider_name} timed out after {timeout}s")
                results.append((provider_name, None))
            else:
                results.append((provider_name, future.result()))
        return results

    def _save_locally(self, name: str, data: bytes) -> str:
        try:
            path = write_local_file(self.settings.fallback_dir, name, data)
        except LocalIOError as e:
            self.notifier.notify(LOCAL_SAVE_FAILED, f"Failed to save {name} locally: {e}", "ERROR", {'file': name})
            raise

        self.last_local_path = path
        logger.info(f"Capture saved locally: {path}")
        return path

    def upload_all(self, name: str, data: bytes) -> Optional[str]:
        """
        Upload a capture with every loaded provider.

        Args:
            name: Capture filename
            data: Capture bytes, shared read-only by all uploads

        Returns:
            The preferred provider's URL if that upload succeeded, otherwise
            the URL of the last successful provider in registry order, or
            None when nothing was uploaded (the capture is then saved locally)

        Raises:
            LocalIOError: If the local fallback could not be written
        """
        self.last_local_path = None

        try:
            self._ensure_providers()
        except NoProvidersError as e:
            logger.warning(f"{e}, saving {name} locally")
            self._save_locally(name, data)
            return None

        targets = self._ready_providers()
        logger.info(f"Uploading {name} ({len(data)} bytes) to {len(targets)} provider(s)")

        preferred = self.settings.provider_to_copy
        result = None
        last = None

        for provider_name, url in self._upload_concurrently(targets, name, data):
            display_name = self.settings.display_name(provider_name)

            if not url:
                self.notifier.notify(
                    UPLOAD_FAILED,
                    f'Upload failed using "{display_name}" provider!',
                    "WARNING",
                    {'provider': provider_name, 'file': name},
                )
                continue

            self.notifier.notify(UPLOAD_SUCCEEDED, f"Uploaded to {display_name}: {url}", "INFO",
                                 {'provider': provider_name, 'file': name, 'url': url})
            last = url
            if provider_name == preferred:
                result = url

        url = result or last

        if url is None and self.settings.save_on_upload_failure:
            logger.warning(f"Every upload of {name} failed, saving it locally")
            self._save_locally(name, data)

        return url
