"""
Unit Tests: Notifications
=========================
Level filtering, log delivery and webhook payloads.
"""

import logging
from unittest.mock import MagicMock

import pytest


class TestNotificationLevels:
    """Which events reach the sink at each level."""

    @pytest.mark.unit
    def test_standard_skips_verbose_events(self):
        from sharpcrop.notifications import LogNotifier
        from sharpcrop.notifications.base import PROVIDER_LOADED, UPLOAD_FAILED

        notifier = LogNotifier("standard")

        assert notifier.notify(PROVIDER_LOADED, "Loaded") is False
        assert notifier.notify(UPLOAD_FAILED, "Upload failed", "WARNING") is True

    @pytest.mark.unit
    def test_errors_only_keeps_critical_events(self):
        from sharpcrop.notifications import LogNotifier
        from sharpcrop.notifications.base import PROVIDER_REGISTERED, UPLOAD_COMPLETED, UPLOAD_FAILED

        notifier = LogNotifier("errors_only")

        assert notifier.notify(UPLOAD_COMPLETED, "Upload completed!") is True
        assert notifier.notify(UPLOAD_FAILED, "Upload failed", "WARNING") is False
        assert notifier.notify(PROVIDER_REGISTERED, "Registered") is False
        assert notifier.notify("anything", "Broken", "ERROR") is True

    @pytest.mark.unit
    def test_minimal_allows_registrations(self):
        from sharpcrop.notifications import LogNotifier
        from sharpcrop.notifications.base import PROVIDER_REGISTERED, UPLOAD_SUCCEEDED

        notifier = LogNotifier("minimal")

        assert notifier.notify(PROVIDER_REGISTERED, "Registered") is True
        assert notifier.notify(UPLOAD_SUCCEEDED, "Uploaded") is False

    @pytest.mark.unit
    def test_invalid_level_falls_back_to_standard(self):
        from sharpcrop.notifications import LogNotifier, NotificationLevel

        assert LogNotifier("loud").notification_level == NotificationLevel.STANDARD
        assert LogNotifier(None).notification_level == NotificationLevel.STANDARD

    @pytest.mark.unit
    def test_base_notifier_is_abstract(self):
        """Should require a sink implementation."""
        from sharpcrop.notifications import BaseNotifier

        with pytest.raises(TypeError):
            BaseNotifier("standard")


class TestLogNotifier:
    """Tests for LogNotifier."""

    @pytest.mark.unit
    def test_logs_at_requested_level(self, caplog):
        from sharpcrop.notifications import LogNotifier

        with caplog.at_level(logging.INFO, logger="sharpcrop.notifications.base"):
            LogNotifier("verbose").notify("upload_failed", 'Upload failed using "FTP" provider!', "WARNING")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "[upload_failed]" in record.getMessage()

    @pytest.mark.unit
    def test_delivery_errors_are_swallowed(self):
        """Should never raise out of notify()."""
        from sharpcrop.notifications import BaseNotifier

        class Broken(BaseNotifier):
            def _deliver(self, event, message, log_level, extra_data):
                raise RuntimeError("sink down")

        assert Broken("verbose").notify("upload_completed", "done") is False


class TestWebhookNotifier:
    """Tests for WebhookNotifier."""

    @pytest.mark.unit
    def test_posts_payload(self, monkeypatch):
        from sharpcrop.notifications import WebhookNotifier
        from sharpcrop.notifications import webhook_notifier

        post = MagicMock(return_value=MagicMock(status_code=200))
        monkeypatch.setattr(webhook_notifier.requests, "post", post)

        notifier = WebhookNotifier("https://hooks.example/x", version="9.9.9")
        assert notifier._post("upload_completed", {"event": "upload_completed"}) is True

        args, kwargs = post.call_args
        assert args[0] == "https://hooks.example/x"
        assert kwargs["json"] == {"event": "upload_completed"}

    @pytest.mark.unit
    def test_delivers_on_background_thread(self, monkeypatch):
        """Should build the payload and hand it to a worker thread."""
        import threading
        from sharpcrop.notifications import WebhookNotifier

        sent = threading.Event()
        received = {}

        def fake_post(self, event, payload):
            received.update(payload)
            sent.set()
            return True

        monkeypatch.setattr(WebhookNotifier, "_post", fake_post)

        notifier = WebhookNotifier("https://hooks.example/x", version="9.9.9")
        assert notifier.notify("upload_completed", "Upload completed!", "INFO", {"url": "https://a/1"}) is True

        assert sent.wait(5)
        assert received["event"] == "upload_completed"
        assert received["message"] == "Upload completed!"
        assert received["version"] == "9.9.9"
        assert received["url"] == "https://a/1"

    @pytest.mark.unit
    def test_request_error_returns_false(self, monkeypatch):
        import requests
        from sharpcrop.notifications import WebhookNotifier
        from sharpcrop.notifications import webhook_notifier

        monkeypatch.setattr(
            webhook_notifier.requests, "post",
            MagicMock(side_effect=requests.exceptions.ConnectionError("down")),
        )

        assert WebhookNotifier("https://hooks.example/x")._post("e", {}) is False


class TestCreateNotifier:
    """Tests for create_notifier."""

    @pytest.mark.unit
    def test_log_notifier_by_default(self, settings):
        from sharpcrop.notifications import LogNotifier, create_notifier

        assert type(create_notifier(settings)) is LogNotifier

    @pytest.mark.unit
    def test_webhook_when_configured(self, settings):
        from sharpcrop.notifications import NotificationLevel, WebhookNotifier, create_notifier

        settings.set("webhook_url", "https://hooks.example/x")
        settings.set("notification_level", "minimal")

        notifier = create_notifier(settings)

        assert isinstance(notifier, WebhookNotifier)
        assert notifier.notification_level == NotificationLevel.MINIMAL
