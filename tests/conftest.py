"""
Pytest Configuration and Fixtures
==================================
Loads test credentials from environment and provides reusable fixtures.
"""

import os
import sys
import time
import pytest
from pathlib import Path
from dotenv import load_dotenv

# Add lib to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "lib"))

# Load test environment variables
env_file = project_root / ".env.test"
if env_file.exists():
    load_dotenv(env_file)
else:
    # Try loading from CI environment
    load_dotenv()


# =============================================================================
# CREDENTIAL FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def dropbox_credentials():
    """Dropbox app key and refresh token from environment."""
    creds = {
        "app_key": os.getenv("TEST_DROPBOX_APP_KEY"),
        "refresh_token": os.getenv("TEST_DROPBOX_REFRESH_TOKEN"),
    }

    if not all(creds.values()):
        pytest.skip("Dropbox credentials not configured")

    return creds


@pytest.fixture(scope="session")
def google_drive_credentials():
    """Google Drive OAuth client and refresh token from environment."""
    creds = {
        "client_id": os.getenv("TEST_GDRIVE_CLIENT_ID"),
        "client_secret": os.getenv("TEST_GDRIVE_CLIENT_SECRET"),
        "refresh_token": os.getenv("TEST_GDRIVE_REFRESH_TOKEN"),
    }

    if not all(creds.values()):
        pytest.skip("Google Drive credentials not configured")

    return creds


@pytest.fixture(scope="session")
def encryption_key():
    """Fernet encryption key for testing."""
    key = os.getenv("TEST_ENCRYPTION_KEY")

    if not key:
        # Generate a temporary key for unit tests
        from cryptography.fernet import Fernet
        key = Fernet.generate_key().decode()

    return key


# =============================================================================
# PROVIDER FIXTURES
# =============================================================================

@pytest.fixture
def dropbox_provider(dropbox_credentials):
    """Dropbox provider loaded from a saved refresh token."""
    import json
    from sharpcrop.providers import DropboxProvider

    provider = DropboxProvider(app_key=dropbox_credentials["app_key"])
    state = json.dumps({"refresh_token": dropbox_credentials["refresh_token"]})
    provider.register(state, interactive=False)
    return provider


@pytest.fixture
def google_drive_provider(google_drive_credentials):
    """Google Drive provider loaded from a saved refresh token."""
    import json
    from sharpcrop.config.constants import GOOGLE_DRIVE_SCOPES, GOOGLE_TOKEN_URL
    from sharpcrop.providers import GoogleDriveProvider

    provider = GoogleDriveProvider(
        client_id=google_drive_credentials["client_id"],
        client_secret=google_drive_credentials["client_secret"],
    )
    state = json.dumps({
        "client_id": google_drive_credentials["client_id"],
        "client_secret": google_drive_credentials["client_secret"],
        "refresh_token": google_drive_credentials["refresh_token"],
        "token_uri": GOOGLE_TOKEN_URL,
        "scopes": list(GOOGLE_DRIVE_SCOPES),
    })
    provider.register(state, interactive=False)
    return provider


# =============================================================================
# FAKE PROVIDERS
# =============================================================================

class FakeProvider:
    """
    Scriptable stand-in for a storage provider.

    Behaviour comes from a plan dict owned by FakeRegistry, so a test can
    change what the next instance does (e.g. fail then succeed).
    """

    def __init__(self, name, plan, calls):
        self.name = name
        self.plan = plan
        self.calls = calls

    def register(self, saved_state, interactive):
        self.calls.append(("register", self.name, saved_state, interactive))
        time.sleep(self.plan.get("register_delay", 0))
        error = self.plan.get("register_error")
        if error is not None:
            raise error
        return self.plan.get("state", saved_state or f"{self.name}-state")

    def upload(self, name, data):
        self.calls.append(("upload", self.name, name, len(data)))
        barrier = self.plan.get("barrier")
        if barrier is not None:
            barrier.wait()
        time.sleep(self.plan.get("upload_delay", 0))
        error = self.plan.get("upload_error")
        if error is not None:
            raise error
        return self.plan.get("url")


class FakeRegistry:
    """Factory replacement: create(name) builds a FakeProvider from its plan."""

    def __init__(self, **plans):
        self.plans = plans
        self.calls = []
        self.options = {}

    def create(self, name, **options):
        self.options[name] = options
        if name not in self.plans:
            raise ValueError(f"Unknown provider: {name}")
        return FakeProvider(name, self.plans[name], self.calls)

    def count(self, kind, name):
        return sum(1 for call in self.calls if call[0] == kind and call[1] == name)


@pytest.fixture
def settings(tmp_path):
    """Settings bound to a temporary file with a temporary fallback folder."""
    from sharpcrop.config import Settings

    return Settings(
        {"fallback_dir": str(tmp_path / "captures")},
        path=str(tmp_path / "Settings.json"),
    )


@pytest.fixture
def credentials(settings):
    """Unencrypted credential store over the temporary settings."""
    from sharpcrop.config import CredentialStore

    return CredentialStore(settings, encryption_key="")


@pytest.fixture
def notifier():
    """Notifier that keeps every event it would have sent."""
    from sharpcrop.notifications import BaseNotifier

    class RecordingNotifier(BaseNotifier):
        def __init__(self):
            super().__init__("verbose")
            self.events = []

        def _deliver(self, event, message, log_level, extra_data):
            self.events.append((event, message, log_level, extra_data))

        def of(self, event):
            return [e for e in self.events if e[0] == event]

    return RecordingNotifier()


@pytest.fixture
def make_orchestrator(settings, credentials, notifier):
    """
    Build an orchestrator over fake providers.

    Usage:
        orchestrator, registry = make_orchestrator(
            saved={"A": "a-state"},
            A={"url": "https://a/1"},
        )
    """
    from sharpcrop.core import UploadOrchestrator

    def _make(saved=None, **plans):
        for name, state in (saved or {}).items():
            settings.providers[name] = state
        registry = FakeRegistry(**plans)
        orchestrator = UploadOrchestrator(settings, credentials, notifier, factory=registry)
        return orchestrator, registry

    return _make


# =============================================================================
# UTILITY FIXTURES
# =============================================================================

@pytest.fixture
def mock_env(monkeypatch):
    """Helper to mock environment variables."""
    def _mock_env(env_dict):
        for key, value in env_dict.items():
            monkeypatch.setenv(key, value)
    return _mock_env


@pytest.fixture
def free_port():
    """A TCP port that was free a moment ago."""
    import socket

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def sample_image_bytes():
    """Minimal valid PNG bytes for testing uploads."""
    # 1x1 transparent pixel
    return bytes([
        0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A, 0x00, 0x00, 0x00, 0x0D,
        0x49, 0x48, 0x44, 0x52, 0x00, 0x00, 0x00, 0x01, 0x00, 0x00, 0x00, 0x01,
        0x08, 0x06, 0x00, 0x00, 0x00, 0x1F, 0x15, 0xC4, 0x89, 0x00, 0x00, 0x00,
        0x0D, 0x49, 0x44, 0x41, 0x54, 0x78, 0x9C, 0x63, 0x00, 0x01, 0x00, 0x00,
        0x05, 0x00, 0x01, 0x0D, 0x0A, 0x2D, 0xB4, 0x00, 0x00, 0x00, 0x00, 0x49,
        0x45, 0x4E, 0x44, 0xAE, 0x42, 0x60, 0x82,
    ])


# =============================================================================
# TEST MARKERS COLLECTION
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: Tests that call external APIs")
    config.addinivalue_line("markers", "dropbox: Tests requiring Dropbox credentials")
    config.addinivalue_line("markers", "google_drive: Tests requiring Google Drive credentials")
    config.addinivalue_line("markers", "slow: Tests that take more than 30 seconds")
