"""Client for a wikiserver listening on a local Unix socket."""

from wikiclient.client import WikiClient, check_session
from wikiclient.config import ClientConfig, load_config
from wikiclient.connection import Connection
from wikiclient.sessions import SessionStore
from wikiclient.state import Credentials, SessionState

__all__ = [
    "ClientConfig",
    "Connection",
    "Credentials",
    "SessionState",
    "SessionStore",
    "WikiClient",
    "check_session",
    "load_config",
]
