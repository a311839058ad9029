import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..models.geo import GeoPoint
from ..models.response import RouteResponse
from ..models.route import TransportMode

logger = logging.getLogger(__name__)


def cache_key(origin: GeoPoint, destination: GeoPoint, mode: TransportMode) -> str:
    """Fixed-precision fingerprint so float noise never splits identical requests."""
    mode_value = mode.value if isinstance(mode, TransportMode) else str(mode)
    # adding 0.0 turns -0.0 into 0.0
    o_lat, o_lng, d_lat, d_lng = (
        round(v, 6) + 0.0 for v in (origin.lat, origin.lng, destination.lat, destination.lng)
    )
    return f"{o_lat:.6f},{o_lng:.6f}-{d_lat:.6f},{d_lng:.6f}-{mode_value}"


@dataclass
class CacheEntry:
    key: str
    response: RouteResponse
    expires_at: float


class RouteCache:
    """TTL cache for route responses.

    Expiry is lazy: a stale entry is dropped when it is read. When the cache
    is full, expired entries are purged and then the entry closest to expiry
    is evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        max_size: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Optional[RouteResponse]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.response

    def set(self, key: str, response: RouteResponse) -> None:
        with self._lock:
            now = self._clock()
            if key not in self._entries and self.max_size and len(self._entries) >= self.max_size:
                self._make_room(now)
            self._entries[key] = CacheEntry(key=key, response=response, expires_at=now + self.ttl)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _make_room(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now >= e.expires_at]
        for k in expired:
            del self._entries[k]
        while len(self._entries) >= self.max_size:
            oldest = min(self._entries.values(), key=lambda e: e.expires_at)
            del self._entries[oldest.key]
            logger.debug(f"Route cache full, evicted {oldest.key}")
