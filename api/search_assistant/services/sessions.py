"""
Conversation session store.

Maps opaque session ids to the model conversation so follow-up questions
continue the same exchange. The default store keeps sessions in process
memory; they are lost on restart.
"""

import asyncio
import logging
import secrets
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Gemini ``contents`` entries: {"role": "user" | "model", "parts": [{"text": ...}]}
Conversation = list[dict[str, Any]]


@dataclass
class ConversationSession:
    """A multi-turn conversation with the model."""

    id: str
    conversation: Conversation = field(default_factory=list)
    created_at: float = field(default_factory=time.monotonic)


class SessionStore(ABC):
    """Key-value store for conversation sessions."""

    @abstractmethod
    def create(self, conversation: Conversation) -> str:
        """Store a new session and return its id."""

    @abstractmethod
    def get(self, session_id: str) -> ConversationSession | None:
        """Return the session, or None if unknown or expired."""

    @abstractmethod
    def put(self, session: ConversationSession) -> None:
        """Insert or replace a session."""

    @abstractmethod
    def delete(self, session_id: str) -> None:
        """Remove a session if present."""

    @abstractmethod
    def lock(self, session_id: str) -> Any:
        """Async context manager serializing work on one session."""


class InMemorySessionStore(SessionStore):
    """
    Process-local session store.

    Sessions never expire unless ``ttl_seconds`` is set. Expired sessions
    are dropped lazily on lookup.
    """

    def __init__(self, ttl_seconds: float | None = None, token_bytes: int = 9) -> None:
        self._sessions: dict[str, ConversationSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._ttl = ttl_seconds
        self._token_bytes = token_bytes

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, conversation: Conversation) -> str:
        session_id = secrets.token_urlsafe(self._token_bytes)
        self.put(ConversationSession(id=session_id, conversation=conversation))
        logger.info("Created session %s", session_id)
        return session_id

    def get(self, session_id: str) -> ConversationSession | None:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if self._is_expired(session):
            logger.info("Session %s expired", session_id)
            self.delete(session_id)
            return None
        return session

    def put(self, session: ConversationSession) -> None:
        self._sessions[session.id] = session

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._locks.pop(session_id, None)

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        try:
            async with lock:
                yield
        finally:
            if session_id not in self._sessions and not lock.locked():
                self._locks.pop(session_id, None)

    def _is_expired(self, session: ConversationSession) -> bool:
        if self._ttl is None:
            return False
        return time.monotonic() - session.created_at > self._ttl
