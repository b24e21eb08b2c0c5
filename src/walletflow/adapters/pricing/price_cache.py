from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from walletflow.config import settings
from walletflow.core.models import PriceResult


class PriceCache:
    """
    TTL cache of resolved prices, keyed by lower-cased token address.

    Owned by the caller and passed to whatever needs read-through lookups. The
    clock is injectable so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        ttl_sec: float = settings.PRICE_CACHE_TTL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_sec
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[float, PriceResult]] = {}

    def get(self, token_address: str) -> Optional[PriceResult]:
        key = token_address.lower()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, result = entry
            if self._clock() - stored_at >= self._ttl:
                del self._entries[key]
                return None
            return result

    def set(self, token_address: str, result: PriceResult) -> None:
        with self._lock:
            self._entries[token_address.lower()] = (self._clock(), result)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
