from __future__ import annotations

import concurrent.futures
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

import structlog

from walletflow.adapters.pricing.dexscreener_adapter import DexScreenerPairAdapter
from walletflow.adapters.pricing.price_cache import PriceCache
from walletflow.config import settings
from walletflow.core.errors import DataSourceError
from walletflow.core.models import ChainProfile, PriceResult, default_profile
from walletflow.ports.pair_port import TradingPairPort
from walletflow.ports.price_port import PricePort
from walletflow.services.price_resolver import resolve_price

log = structlog.get_logger(__name__)


class PriceAdapter(PricePort):
    def __init__(
        self,
        pairs: Optional[TradingPairPort] = None,
        cache: Optional[PriceCache] = None,
        profile: Optional[ChainProfile] = None,
        batch_size: int = settings.PRICE_BATCH_SIZE,
        lookup_timeout_sec: float = settings.PRICE_LOOKUP_TIMEOUT_SEC,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self._pairs = pairs or DexScreenerPairAdapter()
        self._cache = cache if cache is not None else PriceCache()
        self._profile = profile or default_profile()
        self._batch_size = batch_size
        self._timeout = lookup_timeout_sec

    def get_token_usd_price(self, token_address: str) -> Optional[PriceResult]:
        addr = token_address.lower()

        if addr in self._profile.stablecoin_addresses:
            return PriceResult(token_address=addr, price_usd=Decimal("1"), source="stablecoin")

        # the native asset trades through its wrapped form
        if self._profile.is_native(addr):
            wrapped = self.get_token_usd_price(self._profile.wrapped_native_address)
            if wrapped is None:
                return None
            return PriceResult(
                token_address=addr,
                price_usd=wrapped.price_usd,
                source=wrapped.source,
                liquidity_usd=wrapped.liquidity_usd,
            )

        cached = self._cache.get(addr)
        if cached is not None:
            return cached

        try:
            pairs = self._pairs.get_pairs(addr)
        except DataSourceError as e:
            log.warning("price_pairs_unavailable", token=addr, error=str(e))
            return None

        result = resolve_price(addr, pairs, self._profile)
        if result is not None:
            self._cache.set(addr, result)
        return result

    def get_prices(self, token_addresses: Iterable[str]) -> Dict[str, Optional[PriceResult]]:
        """
        Resolve many tokens at once, `batch_size` lookups in flight at a time.

        Every token is independent: a lookup that raises or times out yields
        None for that token only.
        """
        tokens: List[str] = []
        for t in token_addresses:
            a = (t or "").lower()
            if a and a not in tokens:
                tokens.append(a)

        results: Dict[str, Optional[PriceResult]] = {}
        pending: List[str] = []
        for a in tokens:
            cached = self._cache.get(a)
            if cached is not None:
                results[a] = cached
            else:
                pending.append(a)

        if not pending:
            return results

        log.info("price_fanout_start", tokens=len(pending), cached=len(results))
        for i in range(0, len(pending), self._batch_size):
            results.update(self._resolve_batch(pending[i:i + self._batch_size]))

        return {a: results.get(a) for a in tokens}

    def _resolve_batch(self, batch: List[str]) -> Dict[str, Optional[PriceResult]]:
        # fresh pool per batch: a hung lookup never holds a later batch's slot
        out: Dict[str, Optional[PriceResult]] = {}
        ex = concurrent.futures.ThreadPoolExecutor(max_workers=len(batch))
        try:
            futures = {ex.submit(self.get_token_usd_price, a): a for a in batch}
            done, not_done = concurrent.futures.wait(futures, timeout=self._timeout)
            for f in done:
                a = futures[f]
                try:
                    out[a] = f.result()
                except Exception as e:
                    log.warning("price_lookup_failed", token=a, error=str(e))
                    out[a] = None
            for f in not_done:
                a = futures[f]
                f.cancel()
                log.warning("price_lookup_timeout", token=a)
                out[a] = None
        finally:
            ex.shutdown(wait=False, cancel_futures=True)
        return out
