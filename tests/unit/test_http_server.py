"""
Unit Tests: Callback HTTP Server
================================
Serves real requests over loopback; no external network access.
"""

import http.client
import threading

import pytest
import requests


@pytest.fixture
def site(tmp_path):
    """Directory with an index page, another page and a non-HTML file."""
    (tmp_path / "index.html").write_text("<h1>Done</h1>")
    (tmp_path / "page.html").write_text("<p>page</p>")
    (tmp_path / "notes.txt").write_text("plain")
    (tmp_path / "sub").mkdir()
    return tmp_path


@pytest.fixture
def server(site):
    """Running server on a free port with a recording hook."""
    from sharpcrop.utils import CallbackServer

    requests_seen = []
    server = CallbackServer(str(site), 0, on_request=requests_seen.append, host="127.0.0.1")
    server.requests_seen = requests_seen
    server.start()
    yield server
    server.stop()


def _request(port, path, method="GET"):
    # Loopback only, never through a proxy from the environment
    with requests.Session() as session:
        session.trust_env = False
        return session.request(method, f"http://127.0.0.1:{port}{path}", timeout=5)


class TestServing:
    """File serving behaviour."""

    @pytest.mark.unit
    def test_serves_html_file(self, server, site):
        """Should return 200 with body, type and caching headers."""
        response = _request(server.port, "/page.html")

        assert response.status_code == 200
        assert response.headers["Content-Type"] == "text/html"
        assert response.headers["Content-Length"] == str(len("<p>page</p>"))
        assert "Last-Modified" in response.headers
        assert "Date" in response.headers
        assert response.content == (site / "page.html").read_bytes()

    @pytest.mark.unit
    def test_root_serves_index(self, server):
        response = _request(server.port, "/?code=abc")

        assert response.status_code == 200
        assert response.text == "<h1>Done</h1>"

    @pytest.mark.unit
    def test_missing_file_is_404(self, server):
        response = _request(server.port, "/nope.html")

        assert response.status_code == 404

    @pytest.mark.unit
    def test_non_allowlisted_extension_is_404(self, server):
        """Should only serve allowlisted file types."""
        response = _request(server.port, "/notes.txt")

        assert response.status_code == 404

    @pytest.mark.unit
    def test_encoded_null_byte_is_404(self, server):
        """Should answer 404 instead of dropping the connection."""
        response = _request(server.port, "/%00.html")

        assert response.status_code == 404

    @pytest.mark.unit
    def test_directory_is_404(self, server):
        response = _request(server.port, "/sub")

        assert response.status_code == 404

    @pytest.mark.unit
    def test_path_traversal_is_404(self, server, site):
        """Should not serve files outside of the root."""
        outside = site.parent / "secret.html"
        outside.write_text("secret")

        conn = http.client.HTTPConnection("127.0.0.1", server.port, timeout=5)
        try:
            conn.request("GET", "/../secret.html")
            response = conn.getresponse()
            body = response.read()
        finally:
            conn.close()

        assert response.status == 404
        assert b"secret" not in body

    @pytest.mark.unit
    def test_head_has_no_body(self, server):
        response = _request(server.port, "/page.html", "HEAD")

        assert response.status_code == 200
        assert response.content == b""

    @pytest.mark.unit
    def test_open_error_is_500(self, server, monkeypatch):
        """Should answer 500 when an existing file cannot be opened."""
        from sharpcrop.utils import http_server

        def broken_open(*args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(http_server, "open", broken_open, raising=False)

        response = _request(server.port, "/page.html")

        assert response.status_code == 500


class TestHook:
    """The on_request hook."""

    @pytest.mark.unit
    def test_hook_sees_query(self, server):
        _request(server.port, "/?code=abc&state=xyz&state=other")

        request = server.requests_seen[-1]
        assert request.method == "GET"
        assert request.path == "/"
        assert request.query == {"code": "abc", "state": "xyz"}

    @pytest.mark.unit
    def test_hook_runs_for_404(self, server):
        """Should report requests even when nothing is served."""
        _request(server.port, "/missing.html?error=access_denied")

        assert server.requests_seen[-1].query == {"error": "access_denied"}

    @pytest.mark.unit
    def test_hook_errors_do_not_break_serving(self, site):
        from sharpcrop.utils import CallbackServer

        def broken_hook(request):
            raise RuntimeError("bad hook")

        with CallbackServer(str(site), 0, on_request=broken_hook, host="127.0.0.1") as server:
            response = _request(server.port, "/page.html")

        assert response.status_code == 200

    @pytest.mark.unit
    def test_concurrent_requests(self, server):
        """Should handle several clients at once."""
        statuses = []

        def fetch():
            statuses.append(_request(server.port, "/page.html").status_code)

        threads = [threading.Thread(target=fetch) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert statuses == [200] * 5
        assert len(server.requests_seen) == 5


class TestLifecycle:
    """Starting and stopping."""

    @pytest.mark.unit
    def test_port_zero_binds_free_port(self, site):
        from sharpcrop.utils import CallbackServer

        with CallbackServer(str(site), 0, host="127.0.0.1") as server:
            assert server.port != 0
            assert server.is_running
            assert server.url == f"http://localhost:{server.port}/"

    @pytest.mark.unit
    def test_stop_closes_listener(self, site):
        from sharpcrop.utils import CallbackServer

        server = CallbackServer(str(site), 0, host="127.0.0.1").start()
        port = server.port
        server.stop()

        assert not server.is_running
        with pytest.raises(requests.exceptions.ConnectionError):
            _request(port, "/")

    @pytest.mark.unit
    def test_stop_is_idempotent(self, site):
        from sharpcrop.utils import CallbackServer

        server = CallbackServer(str(site), 0, host="127.0.0.1")
        server.stop()
        server.start()
        server.stop()
        server.stop()

