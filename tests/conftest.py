import socket
import shutil
import sys
import tempfile
import threading
from pathlib import Path
from typing import List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from wikiproto.envelope import WikiMessage


class FakeWikiServer:
    """
    Minimal wikiserver on a real Unix socket.

    Every accepted connection is read line by line until a line carrying
    "close": true arrives; then the next queued reply (or the default one)
    is written and the connection is closed. All received lines are kept
    per connection in ``connections``.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self.replies: List[bytes] = []
        self.default_reply = b'["ping",{}]'
        self.echo = False
        self.silent = False
        self.connections: List[List[bytes]] = []
        self._sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._sock.bind(path)
        self._sock.listen(8)
        self._sock.settimeout(0.2)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> "FakeWikiServer":
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()
        self._thread.join(timeout=2)
        self._sock.close()

    def queue(self, *replies: bytes) -> None:
        self.replies.extend(replies)

    @property
    def messages(self) -> List[List[WikiMessage]]:
        return [[WikiMessage.from_json(line.decode()) for line in conn] for conn in self.connections]

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            with conn:
                self._handle(conn)

    def _handle(self, conn: socket.socket) -> None:
        conn.settimeout(2.0)
        lines: List[bytes] = []
        self.connections.append(lines)
        buf = b""
        command: Optional[WikiMessage] = None
        while command is None:
            try:
                chunk = conn.recv(4096)
            except OSError:
                return
            if not chunk:
                return
            buf += chunk
            while b"\n" in buf and command is None:
                line, buf = buf.split(b"\n", 1)
                lines.append(line)
                msg = WikiMessage.from_json(line.decode())
                if msg.closes:
                    command = msg
        if self.silent:
            self._stop.wait(3.0)
            return
        if self.echo:
            reply = WikiMessage(command.tag, command.options).to_line()
        elif self.replies:
            reply = self.replies.pop(0)
        else:
            reply = self.default_reply
        conn.sendall(reply)


@pytest.fixture
def socket_dir():
    # AF_UNIX paths are limited to ~100 bytes, so keep it short
    path = tempfile.mkdtemp(prefix="wk")
    yield Path(path)
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def wiki_server(socket_dir):
    server = FakeWikiServer(str(socket_dir / "s.sock")).start()
    yield server
    server.stop()
