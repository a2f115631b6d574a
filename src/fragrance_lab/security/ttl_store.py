"""
Process-local key/value store with per-entry expiry.

Construct once at process start and inject where needed; the clock is
injectable so tests control time.
"""
import threading
from time import monotonic
from typing import Callable, Dict, Generic, List, Optional, Tuple, TypeVar

V = TypeVar("V")


class TTLStore(Generic[V]):
    """
    Keyed entries that expire `ttl` seconds after they were put.

    Expired entries are removed on access and by sweep().
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = monotonic):
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[V, float]] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def put(self, key: str, value: V, ttl: Optional[float] = None) -> None:
        expires_at = self._clock() + (ttl if ttl is not None else self._ttl)
        with self._lock:
            self._entries[key] = (value, expires_at)

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def setdefault(self, key: str, factory: Callable[[], V]) -> V:
        """Return the live entry for `key`, or put and return `factory()`."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now < entry[1]:
                return entry[0]
            value = factory()
            self._entries[key] = (value, now + self._ttl)
            return value

    def touch(self, key: str) -> bool:
        """
        Restart the expiry of a live entry.

        :return: False if the entry is missing or already expired
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now >= entry[1]:
                return False
            self._entries[key] = (entry[0], now + self._ttl)
            return True

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def sweep(self) -> int:
        """
        Remove expired entries.

        :return: Number of entries removed
        """
        now = self._clock()
        with self._lock:
            expired: List[str] = [k for k, (_, exp) in self._entries.items() if now >= exp]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
