"""
Session persistence across two storage tiers.

The short-lived tier lasts for one process; the long-lived tier survives
restarts. At most one tier holds the record at any time, and a record in the
long-lived tier means "remember me" was asked for at login.
"""

import json
import logging

from pydantic import ValidationError

from eldercare.database import KeyValueStore
from eldercare.errors import CorruptSessionError
from eldercare.models import Session, User

logger = logging.getLogger(__name__)

DEFAULT_SESSION_KEY = "eldercare_user"


class SessionStore:
    def __init__(
        self,
        short_lived: KeyValueStore,
        long_lived: KeyValueStore,
        *,
        key: str = DEFAULT_SESSION_KEY,
    ) -> None:
        self._short_lived = short_lived
        self._long_lived = long_lived
        self._key = key

    def load(self) -> Session | None:
        """
        Read the long-lived tier first, then the short-lived one.
        A corrupt record wipes both tiers and reads as no session.
        """
        try:
            raw = self._long_lived.get(self._key)
            remembered = raw is not None
            if raw is None:
                raw = self._short_lived.get(self._key)
            if raw is None:
                return None
            user = _decode_user(raw)
        except CorruptSessionError as exc:
            logger.warning("Discarding corrupt session record: %s", exc.message)
            self.clear()
            return None

        return Session(user=user, remember_me=remembered)

    def save(self, session: Session, remember: bool) -> None:
        record = session.model_dump_json(by_alias=True)
        if remember:
            self._long_lived.put(self._key, record)
            self._short_lived.delete(self._key)
        else:
            self._short_lived.put(self._key, record)
            self._long_lived.delete(self._key)

    def clear(self) -> None:
        self._long_lived.delete(self._key)
        self._short_lived.delete(self._key)


def _decode_user(raw: str) -> User:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise CorruptSessionError(f"not valid JSON ({exc})") from exc

    if not isinstance(data, dict) or not isinstance(data.get("user"), dict):
        raise CorruptSessionError("record has no user object")

    try:
        return User.model_validate(data["user"])
    except ValidationError as exc:
        raise CorruptSessionError(
            f"user failed validation ({exc.error_count()} errors)"
        ) from exc
