import json
import logging
import os
import tempfile
from collections.abc import Callable, Iterator, MutableMapping
from pathlib import Path
from typing import Any, Generic, Protocol, TypeVar

K = TypeVar("K")
V = TypeVar("V")

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """
    Minimal string store a session tier has to provide.
    """

    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryKeyValueDatabase(Generic[K, V]):
    """
    Simple in-memory key/value database.
    """

    def __init__(self) -> None:
        self._store: MutableMapping[K, V] = {}

    def put(self, key: K, value: V) -> None:
        self._store[key] = value

    def get(self, key: K) -> V | None:
        return self._store.get(key)

    def delete(self, key: K) -> None:
        self._store.pop(key, None)

    def all(self) -> list[V]:
        return list(self._store.values())

    def clear(self) -> None:
        self._store.clear()

    def __iter__(self) -> Iterator[V]:
        return iter(self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def update_if(
        self, key: K, predicate: Callable[[V], bool], updated: Callable[[V], V]
    ) -> V | None:
        """
        Replace the value under ``key`` only if ``predicate`` holds for it.
        Returns the new value, or None if the key is missing or the check failed.
        """
        value = self._store.get(key)
        if value is None or not predicate(value):
            return None
        # no awaits between check and write, so this is atomic on the event loop
        new_value = updated(value)
        self._store[key] = new_value
        return new_value


class JsonFileKeyValueDatabase:
    """
    String key/value database persisted as a single JSON object on disk.

    Every write replaces the file atomically. A missing or unreadable file
    reads as empty so callers never see partial state.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path).expanduser()

    def _read(self) -> dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            logger.warning("Ignoring unreadable store %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring non-object store %s", self.path)
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        if value is None:
            return None
        # hand-edited files may hold non-strings; let the reader decide
        return value if isinstance(value, str) else json.dumps(value)

    def put(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def clear(self) -> None:
        self._write({})

    def __len__(self) -> int:
        return len(self._read())
