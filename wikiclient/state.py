from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class Credentials:
    name: str
    password: str = ""

    def auth_options(self) -> Dict[str, str]:
        return {"name": self.name, "password": self.password}

    def __repr__(self) -> str:
        return f"Credentials(name={self.name!r}, password='***')"


@dataclass
class SessionState:
    session_id: Optional[str] = None

    @property
    def has_session(self) -> bool:
        return bool(self.session_id)

    def adopt(self, session_id: Optional[str]) -> None:
        self.session_id = session_id or None
