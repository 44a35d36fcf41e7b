"""
SnipKeep Backend — Session Store
=================================

What:  Maps opaque session tokens to the logged-in user, with expiry.
How:   `SessionStore` is the interface the auth layer depends on;
       `InMemorySessionStore` is the process-local implementation the app
       wires up by default.
Who:   Written by AuthService on login/logout; read by the `require_login`
       dependency on every snippet request.

Lifetime:
    A session expires a fixed `ttl` seconds after it was issued. Reading it
    does not extend it. Expired entries are dropped lazily by `get()` and in
    bulk by `expire()`. A process restart forgets every session.

Multi-process deployments need a shared backend (e.g. Redis) implementing
the same methods; nothing outside this module would change.
"""

import abc
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class SessionData:
    user_id: str
    username: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class SessionStore(abc.ABC):
    """Interface for session persistence."""

    @abc.abstractmethod
    async def get(self, token: str) -> Optional[SessionData]:
        """Return the live session for `token`, or None if unknown or expired."""

    @abc.abstractmethod
    async def set(self, token: str, user_id: str, username: str, ttl: int) -> SessionData:
        """Bind `token` to a user for `ttl` seconds from now."""

    @abc.abstractmethod
    async def destroy(self, token: str) -> None:
        """Forget `token`. Unknown tokens are ignored."""

    @abc.abstractmethod
    async def expire(self) -> int:
        """Drop every expired session and return how many were removed."""

    @abc.abstractmethod
    async def count(self) -> int:
        """Number of sessions that have not expired yet."""


class InMemorySessionStore(SessionStore):
    """
    Dict-backed session store living in this process.

    Args:
        clock: Source of the current time in seconds. Tests pass a fake
               clock to move past the expiry without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._sessions: Dict[str, SessionData] = {}

    async def get(self, token: str) -> Optional[SessionData]:
        session = self._sessions.get(token)
        if session is None:
            return None
        if session.is_expired(self._clock()):
            del self._sessions[token]
            logger.debug("Session for user %s expired", session.user_id)
            return None
        return session

    async def set(self, token: str, user_id: str, username: str, ttl: int) -> SessionData:
        session = SessionData(
            user_id=user_id,
            username=username,
            expires_at=self._clock() + ttl,
        )
        self._sessions[token] = session
        return session

    async def destroy(self, token: str) -> None:
        self._sessions.pop(token, None)

    async def expire(self) -> int:
        now = self._clock()
        stale = [t for t, s in self._sessions.items() if s.is_expired(now)]
        for token in stale:
            del self._sessions[token]
        if stale:
            logger.debug("Purged %d expired sessions", len(stale))
        return len(stale)

    async def count(self) -> int:
        now = self._clock()
        return sum(1 for s in self._sessions.values() if not s.is_expired(now))
