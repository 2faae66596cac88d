from __future__ import annotations
import re
from typing import Any, Mapping

# ========================================
#           INPUT VALIDATION HELPERS
# ========================================
"""
Helpers the message codec calls to decide whether a frame read from or
written to the wikiserver socket has the expected shape.
"""

# Command and reply tags are bare words like "page", "page_save" or "wiki".
_TAG_RE = re.compile(r'^[A-Za-z][A-Za-z0-9_-]*$')


def is_tag(s: Any) -> bool:
    """
    returns True if s is a non-empty command/reply tag, otherwise False.
    """
    return isinstance(s, str) and bool(_TAG_RE.fullmatch(s))


def has_string_keys(mapping: Any) -> bool:
    """
    JSON objects only have string keys; anything else cannot go on the wire
    as an options mapping.
    """
    return isinstance(mapping, Mapping) and all(isinstance(k, str) for k in mapping)


def is_json_value(value: Any) -> bool:
    """
    Accepts None, bool, int, float, str, and lists/dicts built from them.

    Tuples are allowed since json encodes them as arrays.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return True
    if isinstance(value, (list, tuple)):
        return all(is_json_value(v) for v in value)
    if isinstance(value, Mapping):
        return has_string_keys(value) and all(is_json_value(v) for v in value.values())
    return False


def is_truthy(value: Any) -> bool:
    """
    Truthiness the way the server means it: 0, "", "0", false, null, empty
    arrays and objects are false.
    """
    if isinstance(value, str):
        return value not in ("", "0")
    return bool(value)
