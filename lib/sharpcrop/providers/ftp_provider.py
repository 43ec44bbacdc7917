"""
FTP Upload Provider
===================
Uploads captures to an FTP/FTPS server that is also exposed over HTTP.

Uses Python's built-in ftplib. The returned URL is the configured public
URL prefix followed by the capture name.
"""

import ftplib
import logging
from contextlib import contextmanager
from io import BytesIO
from typing import Any, Callable, Dict, Iterator, Optional

from .base import BaseUploadProvider
from ..config.constants import HTTP_TIMEOUT_SECONDS, PROVIDER_FTP
from ..config.credentials import mask_credential
from ..errors import AuthError, UploadError

logger = logging.getLogger(__name__)


class FTPProvider(BaseUploadProvider):
    """
    FTP upload provider.

    Saved state: {"host", "port", "username", "password", "remote_dir",
                  "public_url", "use_tls"}

    A new connection is opened for every upload so that no idle control
    connection has to be kept alive between captures.
    """

    def __init__(
        self,
        prompt: Optional[Callable[[str], str]] = None,
        ftp_factory: Optional[Callable[..., ftplib.FTP]] = None,
    ):
        super().__init__(prompt)
        self.config: Dict[str, Any] = {}
        self._ftp_factory = ftp_factory

    def register(self, saved_state: Optional[str], interactive: bool) -> str:
        config = self.load_state(saved_state)

        if config.get('host'):
            try:
                self._verify(config)
                return saved_state
            except AuthError as e:
                if not interactive:
                    raise
                logger.info(f"Saved FTP configuration rejected, asking for a new one: {e}")

        if not interactive:
            raise AuthError("No saved FTP configuration")

        config = self._ask_config(config)
        self._verify(config)
        return self.dump_state(config)

    def _ask_config(self, defaults: Dict[str, Any]) -> Dict[str, Any]:
        host = self.ask(f"FTP host [{defaults.get('host', '')}]: ") or defaults.get('host', '')
        if not host:
            raise AuthError("FTP registration cancelled")

        port_answer = self.ask(f"FTP port [{defaults.get('port', 21)}]: ")
        try:
            port = int(port_answer) if port_answer else int(defaults.get('port', 21))
        except ValueError:
            raise AuthError(f"Invalid FTP port: {port_answer}")

        username = self.ask("Username [anonymous]: ") or 'anonymous'
        password = self.ask("Password: ")
        remote_dir = self.ask("Remote directory [/]: ") or '/'
        public_url = self.ask("Public URL of that directory: ")
        if not public_url:
            raise AuthError("A public URL is required to share FTP uploads")
        use_tls = self.ask("Use TLS (y/N): ").lower().startswith('y')

        return {
            'host': host,
            'port': port,
            'username': username,
            'password': password,
            'remote_dir': remote_dir,
            'public_url': public_url if public_url.endswith('/') else public_url + '/',
            'use_tls': use_tls,
        }

    @contextmanager
    def _session(self, config: Dict[str, Any]) -> Iterator[ftplib.FTP]:
        """Logged-in connection in the remote directory, closed on exit."""
        if self._ftp_factory is not None:
            ftp = self._ftp_factory()
        elif config.get('use_tls'):
            ftp = ftplib.FTP_TLS(timeout=HTTP_TIMEOUT_SECONDS)
        else:
            ftp = ftplib.FTP(timeout=HTTP_TIMEOUT_SECONDS)

        try:
            ftp.connect(config['host'], int(config.get('port', 21)))
        except ftplib.all_errors:
            ftp.close()
            raise

        try:
            ftp.login(config.get('username') or 'anonymous', config.get('password') or '')
            if isinstance(ftp, ftplib.FTP_TLS):
                ftp.prot_p()
            ftp.set_pasv(True)

            remote_dir = config.get('remote_dir') or '/'
            if remote_dir != '/':
                ftp.cwd(remote_dir)
            yield ftp
        finally:
            try:
                ftp.quit()
            except ftplib.all_errors as e:
                logger.debug(f"FTP quit failed, closing socket: {e}")
                ftp.close()

    def _verify(self, config: Dict[str, Any]) -> None:
        logger.debug(
            f"Connecting to FTP {config.get('host')} as {config.get('username')} "
            f"(password {mask_credential(config.get('password'))})"
        )
        try:
            with self._session(config):
                pass
        except ftplib.all_errors as e:
            self._connected = False
            raise AuthError(f"FTP connection failed: {e}")

        self.config = config
        self._connected = True
        logger.info(f"Connected to FTP server {config['host']}")

    def upload(self, name: str, data: bytes) -> str:
        if not self._connected:
            raise UploadError("Not connected to FTP server")

        try:
            with self._session(self.config) as ftp:
                ftp.storbinary(f"STOR {name}", BytesIO(data))
        except ftplib.all_errors as e:
            raise UploadError(f"FTP upload failed: {e}")

        logger.info(f"Uploaded to FTP: {name}")
        return self.config['public_url'] + name

    def get_provider_type(self) -> str:
        return PROVIDER_FTP

    def get_provider_name(self) -> str:
        return "FTP"
