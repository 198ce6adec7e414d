import json
import logging
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.database.models import StorageEntry

logger = logging.getLogger(__name__)

PINS_KEY = "japan-planner-pins"
TRIPS_KEY = "japan_trip_plans"
ACTIVE_TRIP_KEY = "japan_active_trip_id"


class StorageError(Exception):
    pass


class StorageBackend(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> List[str]: ...


class MemoryStorage:
    """Process-local storage. Backs the session cache and stands in for the database in tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items)


class SqlStorage:
    """
    Key-value storage on the ``storage_entries`` table.

    Calls are synchronous and block the event loop for one single-row read or
    write. Routes stay ``async def`` so every store mutation runs on the loop
    thread and concurrent requests never interleave inside a store.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get_item(self, key: str) -> Optional[str]:
        try:
            with self._session_factory() as session:
                entry = session.get(StorageEntry, key)
                return entry.value if entry else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read '{key}': {e}") from e

    def set_item(self, key: str, value: str) -> None:
        try:
            with self._session_factory() as session:
                entry = session.get(StorageEntry, key)
                if entry:
                    entry.value = value
                else:
                    session.add(StorageEntry(key=key, value=value))
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write '{key}': {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            with self._session_factory() as session:
                entry = session.get(StorageEntry, key)
                if entry:
                    session.delete(entry)
                    session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to remove '{key}': {e}") from e

    def keys(self) -> List[str]:
        try:
            with self._session_factory() as session:
                return list(session.execute(select(StorageEntry.key)).scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list keys: {e}") from e


class JsonDocument:
    """
    A single JSON document stored under one key.

    Every ``save`` rewrites the whole document; there are no partial updates.
    ``load`` returns None when nothing is stored. Backend faults surface as
    StorageError and unparseable content as ValueError, so each store decides
    how to degrade.
    """

    def __init__(self, backend: StorageBackend, key: str):
        self.backend = backend
        self.key = key

    def load(self) -> Any:
        raw = self.backend.get_item(self.key)
        if raw is None:
            return None
        return json.loads(raw)

    def save(self, value: Any) -> None:
        self.backend.set_item(self.key, json.dumps(value))

    def clear(self) -> None:
        self.backend.remove_item(self.key)
