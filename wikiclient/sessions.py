from __future__ import annotations
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from wikiproto.log import get_logger

from .config import app_dir

logger = get_logger(__name__)


class SessionStore:
    """Session tokens saved per wiki name, so a login outlives the process."""

    def __init__(self, base: Optional[Path] = None) -> None:
        self.base = base or (app_dir() / "sessions.json")
        self._data: Dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        if self.base.exists():
            try:
                data = json.loads(self.base.read_text())
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Ignoring unreadable session file {self.base}: {e}")
                return
            if isinstance(data, dict):
                self._data = {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}

    def save(self) -> None:
        """Write atomically; mkstemp creates the temp file with mode 0600"""
        self.base.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f"{self.base.stem}_", suffix=".json.tmp", dir=self.base.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(self._data, tmp, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.base)
        except OSError as e:
            logger.error(f"Failed to write {self.base}: {e}")
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def set(self, wiki_name: str, session_id: str) -> None:
        self._data[wiki_name] = session_id
        self.save()

    def get(self, wiki_name: str) -> Optional[str]:
        return self._data.get(wiki_name)

    def remove(self, wiki_name: str) -> None:
        if self._data.pop(wiki_name, None) is not None:
            self.save()

    def all(self) -> Dict[str, str]:
        return dict(self._data)
