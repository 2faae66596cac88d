"""
Client configuration.

Values come from a YAML file, then environment variables override them:

    # ~/.config/wikiclient/config.yaml
    socket_path: /run/wikiserver/wiki.sock
    wiki_name: mywiki
    wiki_password: secret
    timeout: 10
    connect_attempts: 5

WIKI_SOCKET, WIKI_NAME, WIKI_PASSWORD and WIKI_SESSION_ID override the
matching keys.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import click
import yaml

from wikiproto.errors import ConfigError
from wikiproto.log import get_logger

from .connection import DEFAULT_CONNECT_ATTEMPTS, DEFAULT_TIMEOUT

logger = get_logger(__name__)

APP_NAME = "wikiclient"

ENV_OVERRIDES = {
    "WIKI_SOCKET": "socket_path",
    "WIKI_NAME": "wiki_name",
    "WIKI_PASSWORD": "wiki_password",
    "WIKI_SESSION_ID": "session_id",
}


def app_dir() -> Path:
    """Per-user directory for the config file and stored sessions."""
    return Path(click.get_app_dir(APP_NAME))


def default_config_path() -> Path:
    return app_dir() / "config.yaml"


@dataclass
class ClientConfig:
    socket_path: str = "/tmp/wikiserver.sock"
    wiki_name: str = ""
    wiki_password: str = ""
    session_id: Optional[str] = None
    timeout: Optional[float] = DEFAULT_TIMEOUT
    connect_attempts: int = DEFAULT_CONNECT_ATTEMPTS
    retry_delay: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ClientConfig:
        """Build a config from a mapping, validating keys and types"""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = dict(data)
        for key in ("socket_path", "wiki_name", "wiki_password"):
            if key in values and not isinstance(values[key], str):
                raise ConfigError(f"'{key}' must be a string")
        if values.get("session_id") is not None and not isinstance(values["session_id"], str):
            raise ConfigError("'session_id' must be a string")

        try:
            if values.get("timeout") is not None:
                values["timeout"] = float(values["timeout"])
                if values["timeout"] <= 0:
                    raise ConfigError("'timeout' must be positive")
            if "connect_attempts" in values:
                values["connect_attempts"] = int(values["connect_attempts"])
                if values["connect_attempts"] < 1:
                    raise ConfigError("'connect_attempts' must be at least 1")
            if "retry_delay" in values:
                values["retry_delay"] = float(values["retry_delay"])
                if values["retry_delay"] < 0:
                    raise ConfigError("'retry_delay' must not be negative")
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config value: {e}") from e

        return cls(**values)

    def with_overrides(self, **overrides: Any) -> ClientConfig:
        """Copy with every non-None override applied"""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update({k: v for k, v in overrides.items() if v is not None})
        return ClientConfig.from_dict(data)


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed config file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def load_config(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> ClientConfig:
    """
    Load the client configuration.

    Args:
        path: YAML file to read; defaults to config.yaml in the app directory.
            A missing default file is not an error, a missing explicit one is.
        environ: Environment to read overrides from (defaults to os.environ)
    """
    environ = os.environ if environ is None else environ

    data: Dict[str, Any] = {}
    config_path = Path(path).expanduser() if path is not None else default_config_path()
    if config_path.exists():
        data = _read_yaml(config_path)
        logger.debug(f"Loaded config from {config_path}")
    elif path is not None:
        raise ConfigError(f"Config file {config_path} does not exist")

    for env_name, key in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            data[key] = value

    return ClientConfig.from_dict(data)
