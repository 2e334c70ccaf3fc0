"""
In-Memory Session Store for editing sessions.

Responsibilities
----------------
- **Create**: build an :class:`EditorSession` (fresh or from given blocks).
- **Read**: look sessions up by id.
- **Delete**: drop a session.

Note on Persistence
-------------------
This is a volatile memory store; sessions vanish on restart. Persisting the
documents themselves is the job of the external topics service.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import ClassVar

from interleaf.core.contracts.block import Block
from interleaf.core.settings import load_settings
from interleaf.media.uploader import Uploader, build_uploader
from interleaf.session import EditorSession


def _default_uploader() -> Uploader:
    return build_uploader(load_settings())


class SessionStore:
    """A dictionary-backed store of editing sessions."""

    _instance: ClassVar[SessionStore | None] = None

    def __init__(self, uploader_factory: Callable[[], Uploader] = _default_uploader) -> None:
        self._sessions: dict[str, EditorSession] = {}
        self.uploader_factory = uploader_factory

    @classmethod
    def get_instance(cls) -> SessionStore:
        """Accessor for the global singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def create(self, blocks: Sequence[Block] | None = None) -> EditorSession:
        session = EditorSession.create(self.uploader_factory(), blocks)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> EditorSession | None:
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def clear(self) -> None:
        self._sessions.clear()


def get_session_store() -> SessionStore:
    return SessionStore.get_instance()


__all__ = ["SessionStore", "get_session_store"]
