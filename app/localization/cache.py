"""Placeholder value cache.

Holds the last-known value of template arguments for one consumer that
renders the same unit repeatedly. Mutations (``set``, ``forget``, ``clear``)
are recorded but not announced; ``notify`` announces every name changed since
the previous notification in one batch.

The cache belongs to a single owner and is not synchronized.
"""

from typing import Any, Callable, Dict, FrozenSet, Iterator, Set

from localization.hooks import Channel


class _Missing:
    """Sentinel for an argument value that could not be found."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

ChangeListener = Callable[[FrozenSet[str]], Any]


class PlaceholderValueCache:
    """Mapping of placeholder name to its last-known value.

    Usage:
        cache = PlaceholderValueCache()
        cache.set("user", "Ada")
        cache.set("count", 3)
        cache.notify()  # listeners receive frozenset({"user", "count"})
    """

    def __init__(self):
        self._values: Dict[str, Any] = {}
        self._changed: Set[str] = set()
        self._listeners: Channel[FrozenSet[str]] = Channel("placeholder_values_changed")

    def set(self, name: str, value: Any) -> None:
        """Store a value. Storing the value already held is not a change."""
        if name in self._values and self._values[name] == value:
            return
        self._values[name] = value
        self._changed.add(name)

    def forget(self, name: str) -> bool:
        """Drop a cached value.

        Returns:
            True when a value was cached for the name.
        """
        if name not in self._values:
            return False
        del self._values[name]
        self._changed.add(name)
        return True

    def clear(self) -> None:
        self._changed.update(self._values)
        self._values.clear()

    def get(self, name: str, default: Any = MISSING) -> Any:
        return self._values.get(name, default)

    @property
    def pending_changes(self) -> FrozenSet[str]:
        return frozenset(self._changed)

    def notify(self) -> FrozenSet[str]:
        """Announce the names changed since the last notification.

        Listeners are not called when nothing changed.

        Returns:
            The announced names.
        """
        changed = frozenset(self._changed)
        self._changed.clear()
        if changed:
            self._listeners.publish(changed)
        return changed

    def add_listener(self, listener: ChangeListener) -> ChangeListener:
        return self._listeners.register(listener)

    def remove_listener(self, listener: ChangeListener) -> bool:
        return self._listeners.unregister(listener)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))
