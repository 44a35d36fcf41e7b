"""
SnipKeep Backend — Auth Service
================================

What:  Account registration, credential checks, and session issuance.
How:   Users live in the `users` collection of the RecordStore. Passwords are
       hashed with a passlib CryptContext. Sessions are opaque random tokens
       kept in a SessionStore.
Who:   Called by the auth route handlers and the `require_login` dependency.

Flow:
    register(username, password)  → user record appended to users.json
    login(username, password)     → (token, session); route sets the cookie
    resolve(token)                → CurrentUser, or UnauthenticatedError
    logout(token)                 → session destroyed

Usernames are compared after trimming and lowercasing, at registration and
at login alike.
"""

import logging
import secrets
import uuid
from typing import Any, Dict, List, Optional, Tuple

from passlib.context import CryptContext

from snipkeep.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    UnauthenticatedError,
    ValidationError,
)
from snipkeep.schemas.auth import CurrentUser
from snipkeep.services.record_store import USERS, RecordStore
from snipkeep.services.session_store import SessionData, SessionStore

logger = logging.getLogger(__name__)


def normalize_username(username: str) -> str:
    return username.strip().lower()


class AuthService:
    """
    Registration, login and session lookup.

    Args:
        store: Record store holding the `users` collection.
        sessions: Where issued sessions are kept.
        session_ttl: Session lifetime in seconds, fixed from issuance.
        schemes: passlib scheme names; the first hashes new passwords.
    """

    def __init__(
        self,
        store: RecordStore,
        sessions: SessionStore,
        session_ttl: int = 3600,
        schemes: Optional[List[str]] = None,
    ):
        self.store = store
        self.sessions = sessions
        self.session_ttl = session_ttl
        self.pwd_context = CryptContext(
            schemes=schemes or ["pbkdf2_sha256"], deprecated="auto"
        )

    async def register(self, username: Optional[str], password: Optional[str]) -> CurrentUser:
        """
        Create a new account.

        Raises:
            ValidationError: username or password missing or blank.
            ConflictError: the normalized username is already taken.
        """
        if not username or not username.strip() or not password:
            raise ValidationError(message="Missing fields.")

        name = normalize_username(username)
        password_hash = self.pwd_context.hash(password)

        async with self.store.mutation(USERS) as users:
            if any(u.get("username") == name for u in users):
                raise ConflictError(context={"username": name})
            user = {"id": str(uuid.uuid4()), "username": name, "password": password_hash}
            users.append(user)

        logger.info("Registered user %s (%s)", name, user["id"])
        return CurrentUser(id=user["id"], username=name)

    async def _find_user(self, username: str) -> Optional[Dict[str, Any]]:
        users = await self.store.load(USERS)
        return next((u for u in users if u.get("username") == username), None)

    async def authenticate(self, username: Optional[str], password: Optional[str]) -> CurrentUser:
        """
        Check a username/password pair.

        Raises:
            InvalidCredentialsError: unknown user, wrong password, or either
                                     field missing. Callers cannot tell which.
        """
        if not username or not password:
            raise InvalidCredentialsError()

        name = normalize_username(username)
        user = await self._find_user(name)
        if user is None:
            logger.info("Login failed for %s: unknown user", name)
            raise InvalidCredentialsError()

        try:
            valid = self.pwd_context.verify(password, user.get("password", ""))
        except (ValueError, TypeError):
            # unrecognized or corrupt hash
            logger.warning("Stored password hash for user %s is unreadable", user.get("id"))
            valid = False
        if not valid:
            logger.info("Login failed for %s: bad password", name)
            raise InvalidCredentialsError()

        return CurrentUser(id=user["id"], username=user["username"])

    async def login(
        self, username: Optional[str], password: Optional[str]
    ) -> Tuple[str, SessionData]:
        """
        Authenticate and open a session.

        Returns:
            (token, session). The token goes into the session cookie.
        """
        user = await self.authenticate(username, password)
        token = secrets.token_urlsafe(32)
        session = await self.sessions.set(token, user.id, user.username, self.session_ttl)
        logger.info("User %s logged in", user.username)
        return token, session

    async def resolve(self, token: Optional[str]) -> CurrentUser:
        """
        Map a session token to its user.

        Raises:
            UnauthenticatedError: no token, unknown token, or expired session.
        """
        if not token:
            raise UnauthenticatedError()
        session = await self.sessions.get(token)
        if session is None:
            raise UnauthenticatedError()
        return CurrentUser(id=session.user_id, username=session.username)

    async def logout(self, token: Optional[str]) -> None:
        if token:
            await self.sessions.destroy(token)
