"""
Identity cache for one running application.

An ``AuthContext`` starts out ``LOADING``, reads the session store exactly
once in ``start()``, and then only changes through ``login``/``logout``.
Consumers must treat ``LOADING`` as its own state so they do not redirect
before the stored session has been read.
"""

import logging
from enum import StrEnum

from eldercare.models import Session, User
from eldercare.session_store import SessionStore

logger = logging.getLogger(__name__)


class AuthStatus(StrEnum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class AuthContext:
    def __init__(self, store: SessionStore) -> None:
        self._store = store
        self._user: User | None = None
        self._started = False

    @property
    def status(self) -> AuthStatus:
        if not self._started:
            return AuthStatus.LOADING
        if self.is_authenticated():
            return AuthStatus.AUTHENTICATED
        return AuthStatus.ANONYMOUS

    @property
    def user(self) -> User | None:
        return self._user

    def start(self) -> AuthStatus:
        if self._started:
            return self.status
        session = self._store.load()
        self._user = session.user if session is not None else None
        self._started = True
        logger.info("Auth initialised: %s", self.status.value)
        return self.status

    def is_authenticated(self) -> bool:
        return self._user is not None and bool(self._user.id)

    def login(self, session: Session, remember: bool = False) -> None:
        self._user = session.user
        # an explicit login settles a context that was never started
        self._started = True
        self._store.save(session.model_copy(update={"remember_me": remember}), remember)
        logger.info("Signed in user %s (remember=%s)", session.user.id, remember)

    def logout(self) -> None:
        user_id = self._user.id if self._user is not None else None
        self._user = None
        self._store.clear()
        logger.info("Signed out user %s", user_id)

    def close(self) -> None:
        """Drop the in-memory identity; the stored session is left as is."""
        self._user = None
        self._started = False
