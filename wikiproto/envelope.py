from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union
import json

from wikiproto.errors import DecodeError
from wikiproto.utils import has_string_keys, is_json_value, is_tag, is_truthy

JSONValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]
Options = Dict[str, JSONValue]

# option the client adds to every command so the server hangs up after replying
CLOSE_OPTION = "close"
# key the reply tag is merged under when a reply is flattened
RESPONSE_KEY = "response"
# option the server sets when the presented session is no longer valid
LOGIN_AGAIN_OPTION = "login_again"


@dataclass
class WikiMessage:
    """
    One line sent to the wikiserver:

        ["tag", {"option": value, ...}]\\n

    The same shape is used for the two handshake messages ("wiki" and
    "resume") and for commands. Commands additionally carry "close": true.
    """
    tag: str
    options: Options = field(default_factory=dict)

    @classmethod
    def from_json(cls, json_str: str) -> 'WikiMessage':
        """Parse one request line, validating structure"""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise DecodeError(f"Invalid JSON: {e}")
        return cls.from_list(data)

    @classmethod
    def from_list(cls, data: Any) -> 'WikiMessage':
        """Create a message from a decoded ``[tag, options]`` array"""
        if not isinstance(data, list) or len(data) != 2:
            raise DecodeError("message must be a two-element array")
        tag, options = data
        if not is_tag(tag):
            raise DecodeError(f"Invalid tag: {tag!r}")
        if not isinstance(options, dict):
            raise DecodeError("options must be a JSON object")
        return cls(tag=tag, options=options)

    def to_list(self) -> List[Any]:
        return [self.tag, self.options]

    def to_json(self) -> str:
        return json.dumps(self.to_list(), separators=(',', ':'))

    def to_line(self) -> bytes:
        """Encoded frame, newline terminated"""
        return (self.to_json() + "\n").encode("utf-8")

    @property
    def closes(self) -> bool:
        return self.options.get(CLOSE_OPTION) is True


@dataclass
class WikiReply:
    """
    The whole reply the server writes before closing the stream:

        ["reply_tag", {"field": value, ...}]

    The reply tag usually mirrors the command, but the server may answer
    with a different one (for example "error").
    """
    tag: str
    options: Options = field(default_factory=dict)

    @classmethod
    def from_bytes(cls, data: bytes, command: Optional[str] = None) -> 'WikiReply':
        """Decode a buffered reply; trailing whitespace is ignored"""
        try:
            text = data.decode("utf-8").rstrip()
            decoded = json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f"Invalid JSON reply: {e}", command=command, raw=data)

        if not isinstance(decoded, list) or len(decoded) != 2:
            raise DecodeError("reply must be a two-element array", command=command, raw=data)
        tag, options = decoded
        if not isinstance(tag, str):
            raise DecodeError(f"reply tag must be a string, got {type(tag).__name__}", command=command, raw=data)
        if not isinstance(options, dict):
            raise DecodeError("reply options must be a JSON object", command=command, raw=data)
        return cls(tag=tag, options=options)

    @property
    def login_again(self) -> bool:
        return is_truthy(self.options.get(LOGIN_AGAIN_OPTION))

    def to_dict(self) -> Dict[str, Any]:
        """Flatten into the options mapping with the tag under "response" """
        result = dict(self.options)
        result[RESPONSE_KEY] = self.tag
        return result


@dataclass
class SessionExpired:
    """
    Result value for a reply that carried a truthy "login_again". The session
    token the client presented is no longer valid and the caller has to log
    in again before retrying.
    """
    reply: WikiReply

    @property
    def command(self) -> str:
        return self.reply.tag


DispatchResult = Union[Dict[str, Any], SessionExpired]


def create_message(tag: str, options: Optional[Mapping[str, Any]] = None, *, close: bool = False) -> WikiMessage:
    """Helper to build a message; the caller's mapping is copied, never mutated"""
    if not is_tag(tag):
        raise ValueError(f"Invalid command tag: {tag!r}")
    opts: Options = dict(options or {})
    if not has_string_keys(opts):
        raise TypeError("option names must be strings")
    if not all(is_json_value(v) for v in opts.values()):
        raise TypeError(f"options for {tag!r} are not JSON serializable")
    if close:
        opts[CLOSE_OPTION] = True
    return WikiMessage(tag=tag, options=opts)
