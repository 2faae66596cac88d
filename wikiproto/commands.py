from __future__ import annotations

from enum import Enum
from typing import Set


class CommandType(str, Enum):
    """Wikiserver command tags."""

    # Handshake, sent by the connection before any command
    WIKI = "wiki"                # service name/password, every connection
    RESUME = "resume"            # reattach to an existing user session
    LOGIN = "login"              # user login for write access

    # Read commands
    PAGE = "page"
    PAGE_CODE = "page_code"
    PAGE_LIST = "page_list"
    MODEL_CODE = "model_code"
    MODEL_LIST = "model_list"
    IMAGE = "image"
    CAT_POSTS = "cat_posts"
    CAT_LIST = "cat_list"
    PING = "ping"

    # Write commands (the server decides whether the session may write)
    PAGE_SAVE = "page_save"
    PAGE_DEL = "page_del"
    PAGE_MOVE = "page_move"
    MODEL_SAVE = "model_save"
    MODEL_DEL = "model_del"
    MODEL_MOVE = "model_move"


READ_COMMANDS: Set[CommandType] = {
    CommandType.PAGE,
    CommandType.PAGE_CODE,
    CommandType.PAGE_LIST,
    CommandType.MODEL_CODE,
    CommandType.MODEL_LIST,
    CommandType.IMAGE,
    CommandType.CAT_POSTS,
    CommandType.CAT_LIST,
    CommandType.PING,
}

WRITE_COMMANDS: Set[CommandType] = {
    CommandType.LOGIN,
    CommandType.PAGE_SAVE,
    CommandType.PAGE_DEL,
    CommandType.PAGE_MOVE,
    CommandType.MODEL_SAVE,
    CommandType.MODEL_DEL,
    CommandType.MODEL_MOVE,
}
