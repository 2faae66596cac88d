from __future__ import annotations
import socket
import time
from pathlib import Path
from typing import Optional, Union

from wikiproto.commands import CommandType
from wikiproto.envelope import WikiMessage, create_message
from wikiproto.errors import AuthWriteError, ConnectError, TransportError
from wikiproto.log import get_logger, log_wiki_message

from .state import Credentials, SessionState

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_CONNECT_ATTEMPTS = 5
RECV_CHUNK = 4096


class Connection:
    """
    One connection to the wikiserver's Unix socket.

    The server closes the stream after answering a command, so a connection
    carries exactly one command. ``ensure_connected`` opens the socket and
    writes the handshake; the caller sends the command, reads until EOF and
    then calls ``close``. The next command opens a fresh socket.

    Not safe to share between threads: the socket and the connected flag are
    mutated in place.
    """

    def __init__(
        self,
        path: Union[str, Path],
        credentials: Credentials,
        session: SessionState,
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        connect_attempts: int = DEFAULT_CONNECT_ATTEMPTS,
        retry_delay: float = 0.0,
    ) -> None:
        if connect_attempts < 1:
            raise ValueError("connect_attempts must be at least 1")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive or None")
        self.path = str(path)
        self.credentials = credentials
        self.session = session
        self.timeout = timeout
        self.connect_attempts = connect_attempts
        self.retry_delay = retry_delay
        self.sock: Optional[socket.socket] = None
        self.connected = False

    def _open_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self.timeout)
        try:
            sock.connect(self.path)
        except OSError:
            sock.close()
            raise
        return sock

    def open(self) -> socket.socket:
        """Open the socket, retrying a bounded number of times"""
        if self.sock is not None:
            return self.sock

        last_error: Optional[OSError] = None
        for attempt in range(1, self.connect_attempts + 1):
            try:
                self.sock = self._open_socket()
                logger.debug("Opened socket", extra={"socket": self.path, "attempt": attempt})
                return self.sock
            except OSError as e:
                last_error = e
                logger.warning(
                    f"Connect attempt {attempt}/{self.connect_attempts} failed: {e}",
                    extra={"socket": self.path, "attempt": attempt},
                )
                if attempt < self.connect_attempts and self.retry_delay > 0:
                    time.sleep(self.retry_delay)

        raise ConnectError(
            f"Could not connect to {self.path} after {self.connect_attempts} attempts: {last_error}",
            path=self.path,
            attempts=self.connect_attempts,
        ) from last_error

    def ensure_connected(self, purpose: str = "") -> None:
        """
        Open the socket and authenticate, unless already connected.

        ``purpose`` is the command about to be sent. The session is only
        resumed when a token is set and the command is not ``login`` itself.
        """
        if self.connected:
            return

        self.open()

        auth = create_message(CommandType.WIKI.value, self.credentials.auth_options())
        try:
            self._write(auth)
        except OSError as e:
            self.close()
            raise AuthWriteError(
                f"Failed to send wiki authentication to {self.path}: {e}",
                path=self.path,
            ) from e
        self.connected = True
        log_wiki_message(logger, "debug", "Sent wiki authentication", auth,
                         wiki=self.credentials.name, socket=self.path)

        if self.session.has_session and purpose != CommandType.LOGIN.value:
            resume = create_message(CommandType.RESUME.value, {"session_id": self.session.session_id})
            try:
                self._write(resume)
            except OSError as e:
                # base authentication already went through
                logger.warning(f"Failed to resume session: {e}",
                               extra={"wiki": self.credentials.name, "command": purpose})
            else:
                log_wiki_message(logger, "debug", "Sent session resume", resume,
                                 wiki=self.credentials.name)

    def _write(self, message: WikiMessage) -> None:
        if self.sock is None:
            raise BrokenPipeError("socket is not open")
        self.sock.sendall(message.to_line())

    def send(self, message: WikiMessage) -> None:
        """Write one command line"""
        try:
            self._write(message)
        except OSError as e:
            raise TransportError(f"Failed to send {message.tag}: {e}", command=message.tag) from e
        log_wiki_message(logger, "debug", "Sent command", message, socket=self.path)

    def read_until_eof(self, command: Optional[str] = None) -> bytes:
        """
        Read until the server closes the stream.

        The whole read is bounded by ``timeout`` seconds, not each chunk.
        """
        if self.sock is None:
            raise TransportError("socket is not open", command=command)

        deadline = None if self.timeout is None else time.monotonic() + self.timeout
        data = bytearray()
        while True:
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TransportError(
                        f"No end of stream from {self.path} within {self.timeout}s",
                        command=command,
                    )
                self.sock.settimeout(remaining)
            try:
                chunk = self.sock.recv(RECV_CHUNK)
            except socket.timeout as e:
                raise TransportError(
                    f"No end of stream from {self.path} within {self.timeout}s",
                    command=command,
                ) from e
            except OSError as e:
                raise TransportError(f"Failed to read reply: {e}", command=command) from e
            if not chunk:
                break
            data.extend(chunk)

        logger.debug(f"Read {len(data)} bytes", extra={"command": command, "socket": self.path})
        return bytes(data)

    def close(self) -> None:
        """Close the socket and clear the connected flag"""
        sock, self.sock = self.sock, None
        self.connected = False
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            logger.debug(f"Error closing socket: {e}", extra={"socket": self.path})
