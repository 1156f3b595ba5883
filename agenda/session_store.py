"""
Session store

Keeps the single live session per user under ``session:{userId}`` as a
record ``{userId, email, token, loginTime}``. Redis backs it in
production; the in-memory backend serves local development and tests.
"""

import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Optional

import redis

from .config import REDIS_URL, SESSION_BACKEND, SESSION_TTL_SECONDS

logger = logging.getLogger(__name__)


def session_key(user_id: str) -> str:
    return f"session:{user_id}"


class SessionStore(ABC):
    @abstractmethod
    def save(self, user_id: str, session: dict, ttl_seconds: int = SESSION_TTL_SECONDS) -> None:
        """Store the live session for ``user_id``, replacing any previous one"""

    @abstractmethod
    def get(self, user_id: str) -> Optional[dict]:
        """The live session, or None when absent or expired"""

    @abstractmethod
    def delete(self, user_id: str) -> None:
        """Drop the session; later lookups return None"""


class RedisSessionStore(SessionStore):
    def __init__(self, client: redis.Redis):
        self.client = client

    def save(self, user_id: str, session: dict, ttl_seconds: int = SESSION_TTL_SECONDS) -> None:
        self.client.setex(session_key(user_id), ttl_seconds, json.dumps(session))

    def get(self, user_id: str) -> Optional[dict]:
        raw = self.client.get(session_key(user_id))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"⚠️ Discarding unreadable session for user {user_id}")
            return None

    def delete(self, user_id: str) -> None:
        self.client.delete(session_key(user_id))


class MemorySessionStore(SessionStore):
    """Process-local store with per-key expiry"""

    def __init__(self):
        self._entries: dict[str, tuple[dict, float]] = {}
        self._lock = threading.Lock()

    def save(self, user_id: str, session: dict, ttl_seconds: int = SESSION_TTL_SECONDS) -> None:
        with self._lock:
            self._entries[session_key(user_id)] = (dict(session), time.monotonic() + ttl_seconds)

    def get(self, user_id: str) -> Optional[dict]:
        key = session_key(user_id)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            session, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._entries[key]
                return None
            return dict(session)

    def delete(self, user_id: str) -> None:
        with self._lock:
            self._entries.pop(session_key(user_id), None)


_session_store: Optional[SessionStore] = None


def _create_session_store() -> SessionStore:
    if SESSION_BACKEND == "memory":
        logger.warning("⚠️ Using in-memory session store - sessions are lost on restart")
        return MemorySessionStore()

    logger.info("🔄 Initializing Redis connection for sessions...")
    client = redis.from_url(
        REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=15,
        socket_timeout=30,
        retry_on_timeout=True,
        health_check_interval=30,
    )
    logger.info("✅ Redis session store configured")
    return RedisSessionStore(client)


def get_session_store() -> SessionStore:
    """FastAPI dependency returning the process-wide session store"""
    global _session_store
    if _session_store is None:
        _session_store = _create_session_store()
    return _session_store
