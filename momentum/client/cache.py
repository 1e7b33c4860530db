"""
Client-side query cache.

Entries are keyed by tuples so a whole family of queries can be addressed by
a key prefix, e.g. ``("issues",)`` covers every issue list and detail.
The server stays the source of truth: invalidated entries keep their value
but are marked stale and refetched on next read.
"""
import copy
import logging
import threading
from typing import Any, Callable, Dict, Hashable, Tuple

logger = logging.getLogger(__name__)

Key = Tuple[Hashable, ...]


def _under(key: Key, prefix: Key) -> bool:
    return key[:len(prefix)] == prefix


class QueryCache:
    """Thread-safe keyed store with prefix invalidation and change listeners"""

    def __init__(self):
        self._entries: Dict[Key, Any] = {}
        self._stale = set()
        self._listeners = []
        self._lock = threading.RLock()

    def get(self, key: Key, default=None):
        with self._lock:
            return self._entries.get(key, default)

    def has(self, key: Key) -> bool:
        with self._lock:
            return key in self._entries

    def is_stale(self, key: Key) -> bool:
        with self._lock:
            return key not in self._entries or key in self._stale

    def keys(self, prefix: Key = ()) -> list:
        with self._lock:
            return [key for key in self._entries if _under(key, prefix)]

    def set(self, key: Key, value: Any):
        with self._lock:
            self._entries[key] = value
            self._stale.discard(key)
        self._emit(key)

    def set_matching(self, prefix: Key, updater: Callable[[Key, Any], Any]):
        """
        Replaces every entry under `prefix` with ``updater(key, value)``.
        Staleness is left as it was.
        """
        with self._lock:
            changed = []
            for key in self.keys(prefix):
                self._entries[key] = updater(key, self._entries[key])
                changed.append(key)
        for key in changed:
            self._emit(key)

    def snapshot(self, prefix: Key = ()) -> Dict[Key, Any]:
        with self._lock:
            return {key: copy.deepcopy(self._entries[key]) for key in self.keys(prefix)}

    def restore(self, snapshot: Dict[Key, Any], prefix: Key = ()):
        """
        Puts the entries under `prefix` back to exactly what `snapshot` held.
        Entries created after the snapshot are dropped.
        """
        with self._lock:
            for key in self.keys(prefix):
                if key not in snapshot:
                    del self._entries[key]
                    self._stale.discard(key)
            self._entries.update(snapshot)
        self._emit(prefix)

    def invalidate(self, prefix: Key = ()):
        with self._lock:
            self._stale.update(self.keys(prefix))
        self._emit(prefix)

    def subscribe(self, listener: Callable[[Key], None]) -> Callable[[], None]:
        """
        Registers `listener`, called with the affected key or prefix on every
        change.

        Returns:
            A callable that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)
        return unsubscribe

    def _emit(self, key: Key):
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(key)
            except Exception:
                logger.exception(f"Cache listener failed for {key}")


def optimistic(
    cache: QueryCache,
    prefix: Key,
    apply: Callable[[QueryCache], None],
    mutate: Callable[[], Any],
) -> Any:
    """
    Runs `mutate` with a tentative local change already visible in `cache`.

    `apply` edits the cache before the request goes out. If `mutate` raises,
    every entry under `prefix` is put back as it was and the error
    propagates. Either way the prefix is invalidated afterwards so the next
    read refetches from the server.

    Args:
        cache: Cache to edit
        prefix: Key prefix covering every entry `apply` may touch
        apply: Tentative local edit
        mutate: The server call

    Returns:
        Whatever `mutate` returns
    """
    previous = cache.snapshot(prefix)
    apply(cache)
    try:
        return mutate()
    except Exception:
        cache.restore(previous, prefix)
        raise
    finally:
        cache.invalidate(prefix)
