"""In-memory session store: conversation context and Gmail tokens per caller."""
import threading
import time
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from auth_utils import AuthState
from config import SESSION_TTL_SECONDS
from conversation import ConversationContext

logger = logging.getLogger(__name__)


@dataclass
class AgentSession:
    """
    Everything one caller's interactions share.

    `lock` serializes runs for the session; different sessions never share state.
    """
    session_id: str
    context: ConversationContext = field(default_factory=ConversationContext)
    auth: AuthState = field(default_factory=AuthState)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    last_used: float = field(default_factory=time.time)

    def touch(self, now: float = None):
        self.last_used = now if now is not None else time.time()

    def is_expired(self, now: float = None, ttl: float = SESSION_TTL_SECONDS) -> bool:
        now = now if now is not None else time.time()
        return now - self.last_used > ttl


_STORE: Dict[str, AgentSession] = {}
_STORE_LOCK = threading.Lock()


def get_or_create_session(session_id: str, now: float = None) -> AgentSession:
    """
    Get the session for `session_id`, creating it on first use.

    Expired sessions are evicted first, so an expired id starts over empty.
    """
    evict_expired(now)
    with _STORE_LOCK:
        session = _STORE.get(session_id)
        if session is None:
            session = AgentSession(session_id=session_id)
            _STORE[session_id] = session
            logger.info(f"SESSION_STORE: created session {session_id}")
        session.touch(now)
        return session


def get_session(session_id: str) -> Optional[AgentSession]:
    with _STORE_LOCK:
        return _STORE.get(session_id)


def end_session(session_id: str) -> bool:
    """Drop a session (logout). Returns True if it existed."""
    with _STORE_LOCK:
        session = _STORE.pop(session_id, None)
    if session is not None:
        session.auth.clear()
        logger.info(f"SESSION_STORE: ended session {session_id}")
        return True
    return False


def evict_expired(now: float = None, ttl: float = SESSION_TTL_SECONDS) -> int:
    """Remove sessions idle for longer than `ttl`. Returns how many were removed."""
    now = now if now is not None else time.time()
    with _STORE_LOCK:
        expired = [sid for sid, s in _STORE.items() if s.is_expired(now, ttl) and not s.lock.locked()]
        for sid in expired:
            _STORE.pop(sid).auth.clear()
    if expired:
        logger.info(f"SESSION_STORE: evicted {len(expired)} expired session(s)")
    return len(expired)


def clear_sessions():
    with _STORE_LOCK:
        _STORE.clear()
