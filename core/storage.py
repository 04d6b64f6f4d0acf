"""Key-value persistence port and a JSON-backed persistent value wrapper."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, MutableMapping, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = [
    "StorageError",
    "StorageQuotaExceeded",
    "StorageEvent",
    "StorageListener",
    "KeyValueStore",
    "MemoryStore",
    "SessionStateStore",
    "Replace",
    "Derive",
    "PersistentValue",
]


class StorageError(RuntimeError):
    """Raised by a store when a read or write cannot be completed."""


class StorageQuotaExceeded(StorageError):
    """Raised when a write would exceed the store's capacity."""


@dataclass(frozen=True)
class StorageEvent:
    """Change notification; ``new_value`` is ``None`` when the key was removed."""

    key: str
    new_value: str | None


StorageListener = Callable[[StorageEvent], None]


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def subscribe(self, listener: StorageListener) -> Callable[[], None]: ...


class _ListenerRegistry:
    def __init__(self) -> None:
        self._listeners: list[StorageListener] = []

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str, new_value: str | None) -> None:
        event = StorageEvent(key=key, new_value=new_value)
        for listener in list(self._listeners):
            listener(event)


class MemoryStore(_ListenerRegistry):
    """In-process store shared by several readers, like tabs sharing one browser.

    Every subscriber is notified of every write; the last writer wins.
    """

    def __init__(self, *, quota: int | None = None) -> None:
        super().__init__()
        self._data: dict[str, str] = {}
        self._quota = quota

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self._quota is not None:
            used = sum(len(v) for k, v in self._data.items() if k != key)
            if used + len(value) > self._quota:
                raise StorageQuotaExceeded(f"Storing {key!r} would exceed the {self._quota} character quota")
        self._data[key] = value
        self._notify(key, value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)
        self._notify(key, None)


class SessionStateStore(_ListenerRegistry):
    """Store backed by Streamlit's per-session state."""

    def __init__(self, state: MutableMapping[str, Any] | None = None, *, prefix: str = "spendwise::") -> None:
        super().__init__()
        self._state = state
        self._prefix = prefix

    @property
    def state(self) -> MutableMapping[str, Any]:
        if self._state is None:
            import streamlit as st

            self._state = st.session_state
        return self._state

    def get(self, key: str) -> str | None:
        value = self.state.get(self._prefix + key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self.state[self._prefix + key] = value
        self._notify(key, value)

    def remove(self, key: str) -> None:
        full_key = self._prefix + key
        if full_key in self.state:
            del self.state[full_key]
        self._notify(key, None)


@dataclass(frozen=True)
class Replace(Generic[T]):
    """Update that stores ``value`` as is."""

    value: T

    def apply(self, previous: T) -> T:
        return self.value


@dataclass(frozen=True)
class Derive(Generic[T]):
    """Update that computes the new value from the previous one."""

    fn: Callable[[T], T]

    def apply(self, previous: T) -> T:
        return self.fn(previous)


def _identity(value: Any) -> Any:
    return value


class PersistentValue(Generic[T]):
    """A single named value mirrored into a :class:`KeyValueStore` as JSON.

    The in-memory copy is the source of truth for the session: reads that fail
    fall back to ``default`` and writes that fail are logged and kept in
    memory. Changes published by other writers to the same key replace the
    in-memory copy.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        default: T,
        *,
        encode: Callable[[T], Any] = _identity,
        decode: Callable[[Any], T] = _identity,
    ) -> None:
        self.store = store
        self.key = key
        self.default = default
        self._encode = encode
        self._decode = decode
        self._value = self._read()
        self._unsubscribe = store.subscribe(self._handle_event)

    @property
    def value(self) -> T:
        return self._value

    def _read(self) -> T:
        try:
            raw = self.store.get(self.key)
        except StorageError as exc:
            logger.warning("Error reading stored value", extra={"key": self.key, "error": str(exc)})
            return self.default

        if raw is None:
            return self.default

        try:
            return self._decode(json.loads(raw))
        except (TypeError, ValueError) as exc:
            logger.warning("Error decoding stored value", extra={"key": self.key, "error": str(exc)})
            return self.default

    def set(self, update: Replace[T] | Derive[T]) -> T:
        value = update.apply(self._value)
        self._value = value

        try:
            payload = json.dumps(self._encode(value), ensure_ascii=False)
            self.store.set(self.key, payload)
        except StorageQuotaExceeded as exc:
            logger.error("Storage quota exceeded, consider clearing old data", extra={"key": self.key, "error": str(exc)})
        except (StorageError, TypeError, ValueError) as exc:
            logger.error("Error writing stored value", extra={"key": self.key, "error": str(exc)})
        return value

    def remove(self) -> None:
        self._value = self.default
        try:
            self.store.remove(self.key)
        except StorageError as exc:
            logger.error("Error removing stored value", extra={"key": self.key, "error": str(exc)})

    def is_available(self) -> bool:
        """Return ``True`` when the underlying store accepts writes."""

        probe = "__storage_test__"
        try:
            self.store.set(probe, "test")
            self.store.remove(probe)
        except StorageError:
            return False
        return True

    def close(self) -> None:
        self._unsubscribe()

    def _handle_event(self, event: StorageEvent) -> None:
        if event.key != self.key:
            return
        if event.new_value is None:
            self._value = self.default
            return
        try:
            self._value = self._decode(json.loads(event.new_value))
        except (TypeError, ValueError) as exc:
            logger.warning("Error decoding storage event", extra={"key": self.key, "error": str(exc)})
