import logging
import threading
import uuid
import weakref
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from sqlmodel import Session

from app.repositories.storage_repo import StorageRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageEvent:
    """
    Change notification delivered to the *other* contexts of an area.

    Mirrors the browser 'storage' event: the writing context never
    receives its own events.
    """

    area: str
    key: str
    old_value: str | None
    new_value: str | None


StorageListener = Callable[[StorageEvent], None]


class StorageEventHub:
    """
    Process-wide registry of open storage contexts, grouped by area.

    Contexts are held weakly so a context that is dropped without
    close() does not keep receiving events.

    The hub also owns one reentrant lock per area; every context of an
    area writes under that lock, so concurrent requests for the same
    customer run their read-modify-write one after the other.
    """

    def __init__(self):
        self._contexts: dict[str, weakref.WeakSet] = {}
        self._area_locks: dict[str, threading.RLock] = {}
        self._lock = threading.Lock()

    def register(self, context: "KeyValueStorage") -> None:
        with self._lock:
            self._contexts.setdefault(context.area, weakref.WeakSet()).add(context)

    def unregister(self, context: "KeyValueStorage") -> None:
        with self._lock:
            contexts = self._contexts.get(context.area)
            if contexts is None:
                return
            contexts.discard(context)
            if not contexts:
                del self._contexts[context.area]

    def lock_for(self, area: str) -> threading.RLock:
        with self._lock:
            lock = self._area_locks.get(area)
            if lock is None:
                lock = self._area_locks[area] = threading.RLock()
            return lock

    def dispatch(self, origin: "KeyValueStorage", event: StorageEvent) -> None:
        with self._lock:
            targets = [
                context
                for context in self._contexts.get(origin.area, ())
                if context is not origin
            ]
        for context in targets:
            context._deliver(event)


storage_events = StorageEventHub()


class KeyValueStorage(ABC):
    """
    One context's view of a durable key-value storage area.

    Subclasses implement _read/_write/_delete. Every write goes through
    set_item/remove_item so the other contexts of the area are notified.
    """

    def __init__(self, area: str, hub: StorageEventHub | None = None):
        self.area = area
        self.context_id = uuid.uuid4().hex
        self._listeners: list[StorageListener] = []
        self._hub = hub or storage_events
        self._hub.register(self)

    # ---- backend hooks ----

    @abstractmethod
    def _read(self, key: str) -> str | None: ...

    @abstractmethod
    def _write(self, key: str, value: str) -> None: ...

    @abstractmethod
    def _delete(self, key: str) -> None: ...

    @abstractmethod
    def open_context(self) -> "KeyValueStorage":
        """Open another context onto the same area."""

    # ---- public API ----

    @contextmanager
    def locked(self) -> Iterator[None]:
        """
        Hold the area's write lock.

        Wrap a read-modify-write sequence in it so no other context of
        the area can write in between. Reentrant.
        """
        with self._hub.lock_for(self.area):
            yield

    def get_item(self, key: str) -> str | None:
        return self._read(key)

    def set_item(self, key: str, value: str) -> None:
        with self.locked():
            old_value = self._read(key)
            self._write(key, value)
        if old_value != value:
            self._hub.dispatch(
                self, StorageEvent(self.area, key, old_value, value)
            )

    def remove_item(self, key: str) -> None:
        with self.locked():
            old_value = self._read(key)
            if old_value is None:
                return
            self._delete(key)
        self._hub.dispatch(self, StorageEvent(self.area, key, old_value, None))

    def add_listener(self, listener: StorageListener) -> Callable[[], None]:
        """
        Register a listener for changes made by other contexts.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def close(self) -> None:
        self._listeners.clear()
        self._hub.unregister(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _deliver(self, event: StorageEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Storage listener failed for key %s in area %s",
                    event.key,
                    event.area,
                )


class MemoryStorage(KeyValueStorage):
    """
    In-process storage. Contexts opened from one another share the data.
    """

    def __init__(
        self,
        area: str = "default",
        data: dict[str, str] | None = None,
        hub: StorageEventHub | None = None,
    ):
        # Private hub per family so unrelated memory stores never cross-talk.
        super().__init__(area, hub or StorageEventHub())
        self._data = data if data is not None else {}

    def _read(self, key: str) -> str | None:
        return self._data.get(key)

    def _write(self, key: str, value: str) -> None:
        self._data[key] = value

    def _delete(self, key: str) -> None:
        self._data.pop(key, None)

    def open_context(self) -> "MemoryStorage":
        return MemoryStorage(self.area, data=self._data, hub=self._hub)


class DatabaseStorage(KeyValueStorage):
    """
    Storage area persisted in the storage_entries table.

    Each operation runs in its own short session, so the table stays the
    single source of truth across contexts and processes.
    """

    def __init__(
        self,
        engine,
        area: str,
        repo: StorageRepository | None = None,
        hub: StorageEventHub | None = None,
    ):
        super().__init__(area, hub)
        self.engine = engine
        self.repo = repo or StorageRepository()

    def _read(self, key: str) -> str | None:
        with Session(self.engine) as session:
            entry = self.repo.get(session, self.area, key)
            return entry.value if entry else None

    def _write(self, key: str, value: str) -> None:
        with Session(self.engine) as session:
            self.repo.upsert(session, self.area, key, value)

    def _delete(self, key: str) -> None:
        with Session(self.engine) as session:
            self.repo.delete(session, self.area, key)

    def open_context(self) -> "DatabaseStorage":
        return DatabaseStorage(self.engine, self.area, repo=self.repo, hub=self._hub)
