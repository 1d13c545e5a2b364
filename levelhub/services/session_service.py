"""Server-side login sessions keyed by a random session id."""
import logging
import secrets
import threading
import time
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class SessionService:
    """Holds authenticated identities in process memory.

    The browser only ever sees the opaque session id (inside Flask's signed
    session cookie); the access token stays on the server.  Entries expire
    after *ttl_seconds* without use and are dropped lazily on lookup or by
    :meth:`purge_expired`.  Nothing here survives a restart.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock=time.time) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, Tuple[Dict[str, str], float]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self, identity: Dict[str, str]) -> str:
        """Store *identity* and return its new session id."""
        sid = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[sid] = (dict(identity), self._clock())
        logger.info("Session started for user %s", identity.get('roblox_id'))
        return sid

    def get(self, sid: Optional[str]) -> Optional[Dict[str, str]]:
        """Return the identity for *sid*, or ``None`` if unknown or expired.

        A successful lookup refreshes the idle timer.
        """
        if not sid:
            return None
        now = self._clock()
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None:
                return None
            identity, last_seen = entry
            if now - last_seen > self._ttl:
                del self._sessions[sid]
                logger.debug("Session for user %s expired", identity.get('roblox_id'))
                return None
            self._sessions[sid] = (identity, now)
            return dict(identity)

    def destroy(self, sid: Optional[str]) -> bool:
        """Forget *sid*.  Returns ``True`` if it existed."""
        if not sid:
            return False
        with self._lock:
            return self._sessions.pop(sid, None) is not None

    def purge_expired(self) -> int:
        """Drop every expired session and return how many were removed."""
        now = self._clock()
        with self._lock:
            dead = [sid for sid, (_, seen) in self._sessions.items() if now - seen > self._ttl]
            for sid in dead:
                del self._sessions[sid]
        if dead:
            logger.debug("Purged %d expired session(s)", len(dead))
        return len(dead)
