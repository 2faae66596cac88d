#!/usr/bin/env python3
"""
wikiserver client

Create a client with

    client = WikiClient("/run/wikiserver.sock", "mywiki", "wiki-password")

then call one of the command methods. Each returns the reply flattened into
a dict, with the reply tag under "response":

    client.page("Home")
    # {"response": "page", "title": "Home", "content": "..."}

When the server says the session expired ("login_again"), the command
methods return None and call ``login_again_cb`` if one is set.
"""

from __future__ import annotations
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Union

from wikiproto.commands import CommandType
from wikiproto.envelope import (
    RESPONSE_KEY,
    DispatchResult,
    SessionExpired,
    WikiReply,
    create_message,
)
from wikiproto.errors import EmptyResponseError
from wikiproto.log import get_logger
from wikiproto.utils import is_truthy

from .connection import DEFAULT_CONNECT_ATTEMPTS, DEFAULT_TIMEOUT, Connection
from .state import Credentials, SessionState

if TYPE_CHECKING:
    from .config import ClientConfig

logger = get_logger(__name__)

Response = Dict[str, Any]
LoginAgainCallback = Callable[[], None]


def _tag(command: Union[str, CommandType]) -> str:
    return command.value if isinstance(command, CommandType) else command


def check_session(reply: WikiReply) -> DispatchResult:
    """Turn a decoded reply into a response, or SessionExpired on "login_again"."""
    if reply.login_again:
        return SessionExpired(reply)
    return reply.to_dict()


class WikiClient:

    def __init__(
        self,
        path: Union[str, Path],
        wiki_name: str,
        wiki_pass: str,
        session_id: Optional[str] = None,
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        connect_attempts: int = DEFAULT_CONNECT_ATTEMPTS,
        retry_delay: float = 0.0,
        login_again_cb: Optional[LoginAgainCallback] = None,
    ) -> None:
        self.credentials = Credentials(name=wiki_name, password=wiki_pass)
        self.session = SessionState(session_id=session_id or None)
        self.login_again_cb = login_again_cb
        self.connection = Connection(
            path,
            self.credentials,
            self.session,
            timeout=timeout,
            connect_attempts=connect_attempts,
            retry_delay=retry_delay,
        )

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> WikiClient:
        return cls(
            config.socket_path,
            config.wiki_name,
            config.wiki_password,
            config.session_id,
            timeout=config.timeout,
            connect_attempts=config.connect_attempts,
            retry_delay=config.retry_delay,
            **kwargs,
        )

    @property
    def wiki_name(self) -> str:
        return self.credentials.name

    @property
    def session_id(self) -> Optional[str]:
        return self.session.session_id

    @session_id.setter
    def session_id(self, value: Optional[str]) -> None:
        self.session.adopt(value)

    @property
    def connected(self) -> bool:
        return self.connection.connected

    def close(self) -> None:
        self.connection.close()

    # send a command/message and return the tagged result.
    def dispatch(self, command: Union[str, CommandType], options: Optional[Mapping[str, Any]] = None) -> DispatchResult:
        """
        Send one command and decode the reply.

        Returns the flattened response, or SessionExpired when the server
        asked for a new login. Raises ConnectError, TransportError,
        DecodeError or EmptyResponseError on failure.
        """
        tag = _tag(command)
        message = create_message(tag, options, close=True)
        conn = self.connection

        try:
            if tag != CommandType.WIKI.value:
                conn.ensure_connected(tag)
            else:
                # the command is the authentication message itself
                conn.open()
            conn.send(message)
            raw = conn.read_until_eof(tag)
        finally:
            conn.close()

        if not raw.strip():
            raise EmptyResponseError(f"Empty reply to {tag}", command=tag)

        result = check_session(WikiReply.from_bytes(raw, command=tag))
        if isinstance(result, SessionExpired):
            logger.info("Server asked for a new login", extra={"wiki": self.wiki_name, "command": tag})
        return result

    def command(self, command: Union[str, CommandType], options: Optional[Mapping[str, Any]] = None) -> Optional[Response]:
        """Send a command; on session expiry call login_again_cb and return None."""
        result = self.dispatch(command, options)
        if isinstance(result, SessionExpired):
            if self.login_again_cb is not None:
                self.login_again_cb()
            return None
        return result

    @staticmethod
    def is_error(response: Optional[Mapping[str, Any]]) -> bool:
        """True when the server answered with an error instead of a result."""
        if response is None:
            return False
        return response.get(RESPONSE_KEY) == "error" or is_truthy(response.get("error"))

    # send login for write access.
    def login(self, username: str, password: str, session_id: str) -> Optional[Response]:
        res = self.command(CommandType.LOGIN, {
            "username": username,
            "password": password,
            "session_id": session_id,
        })
        if res is not None and not self.is_error(res):
            echoed = res.get("session_id")
            self.session.adopt(echoed if isinstance(echoed, str) and echoed else session_id)
        return res

    # ----------- public read methods -----------

    def page(self, name: str) -> Optional[Response]:
        return self.command(CommandType.PAGE, {"name": name})

    def page_code(self, name: str, display_page: bool) -> Optional[Response]:
        return self.command(CommandType.PAGE_CODE, {
            "name": name,
            "display_page": display_page,
        })

    def page_list(self, sort: str = "m-") -> Optional[Response]:
        return self.command(CommandType.PAGE_LIST, {"sort": sort})

    def model_code(self, name: str, display_model: bool) -> Optional[Response]:
        return self.command(CommandType.MODEL_CODE, {
            "name": name,
            "display_model": display_model,
        })

    def model_list(self, sort: str = "m-") -> Optional[Response]:
        return self.command(CommandType.MODEL_LIST, {"sort": sort})

    def image(self, name: str, width: int, height: int) -> Optional[Response]:
        return self.command(CommandType.IMAGE, {
            "name": name,
            "width": width,
            "height": height,
        })

    def cat_posts(self, name: str, page_n: int) -> Optional[Response]:
        return self.command(CommandType.CAT_POSTS, {
            "name": name,
            "page_n": page_n,
        })

    def cat_list(self, sort: str = "m-") -> Optional[Response]:
        return self.command(CommandType.CAT_LIST, {"sort": sort})

    def ping(self) -> Optional[Response]:
        return self.command(CommandType.PING, {})

    # ----------- public write methods -----------

    def page_save(self, name: str, content: str, message: str) -> Optional[Response]:
        return self.command(CommandType.PAGE_SAVE, {
            "name": name,
            "content": content,
            "message": message,
        })

    def page_del(self, name: str) -> Optional[Response]:
        return self.command(CommandType.PAGE_DEL, {"name": name})

    def page_move(self, name: str, new_name: str) -> Optional[Response]:
        return self.command(CommandType.PAGE_MOVE, {
            "name": name,
            "new_name": new_name,
        })

    def model_save(self, name: str, content: str, message: str) -> Optional[Response]:
        return self.command(CommandType.MODEL_SAVE, {
            "name": name,
            "content": content,
            "message": message,
        })

    def model_del(self, name: str) -> Optional[Response]:
        return self.command(CommandType.MODEL_DEL, {"name": name})

    def model_move(self, name: str, new_name: str) -> Optional[Response]:
        return self.command(CommandType.MODEL_MOVE, {
            "name": name,
            "new_name": new_name,
        })
