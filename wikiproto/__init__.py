"""Wire format and shared helpers for talking to a wikiserver."""

from wikiproto.commands import CommandType
from wikiproto.envelope import SessionExpired, WikiMessage, WikiReply, create_message
from wikiproto.errors import (
    AuthWriteError,
    ConfigError,
    ConnectError,
    DecodeError,
    DispatchError,
    EmptyResponseError,
    TransportError,
    WikiclientError,
)

__all__ = [
    "AuthWriteError",
    "CommandType",
    "ConfigError",
    "ConnectError",
    "DecodeError",
    "DispatchError",
    "EmptyResponseError",
    "SessionExpired",
    "TransportError",
    "WikiMessage",
    "WikiReply",
    "WikiclientError",
    "create_message",
]
