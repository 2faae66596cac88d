from __future__ import annotations

from typing import Optional


class WikiclientError(Exception):
    """Base class for all wikiclient errors."""


class ConfigError(WikiclientError):
    """Raised when the client configuration is malformed."""


class ConnectError(WikiclientError):
    """Raised when no socket could be opened to the wikiserver."""

    def __init__(self, message: str, *, path: Optional[str] = None, attempts: int = 0) -> None:
        self.path = path
        self.attempts = attempts
        super().__init__(message)


class AuthWriteError(ConnectError):
    """Raised when the wiki authentication message could not be written."""


class DispatchError(WikiclientError):
    """Base class for failures while exchanging a command with the server."""

    def __init__(self, message: str, *, command: Optional[str] = None) -> None:
        self.command = command
        super().__init__(message)


class TransportError(DispatchError):
    """Raised when writing the request or reading the reply fails."""


class DecodeError(DispatchError):
    """Raised when the reply is not a JSON ``[tag, options]`` pair."""

    def __init__(self, message: str, *, command: Optional[str] = None, raw: bytes = b"") -> None:
        self.raw = raw
        super().__init__(message, command=command)


class EmptyResponseError(DispatchError):
    """Raised when the server closed the stream without sending anything."""
