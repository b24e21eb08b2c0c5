from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import requests
import structlog

from walletflow.adapters.chain.rate_limiter import SimpleRateLimiter, backoff_sleep
from walletflow.config import settings
from walletflow.core.dto import TradingPair
from walletflow.core.errors import DataSourceError
from walletflow.ports.pair_port import TradingPairPort

log = structlog.get_logger(__name__)


class DexScreenerPairAdapter(TradingPairPort):
    def __init__(
        self,
        base_url: str = settings.DEXSCREENER_BASE_URL,
        chain_id: str = settings.DEXSCREENER_CHAIN_ID,
        requests_per_sec: float = settings.DEXSCREENER_REQUESTS_PER_SEC,
        timeout_sec: int = settings.DEXSCREENER_TIMEOUT_SEC,
        max_retries: int = settings.DEXSCREENER_MAX_RETRIES,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._chain_id = chain_id
        self._timeout = timeout_sec
        self._max_retries = max_retries
        self._rl = SimpleRateLimiter(requests_per_sec)
        self._session = session or requests.Session()

    def _call(self, path: str) -> Dict[str, Any]:
        last_err: Optional[Exception] = None
        url = f"{self._base_url}/{path.lstrip('/')}"
        for attempt in range(self._max_retries):
            try:
                self._rl.wait()
                resp = self._session.get(url, timeout=self._timeout)
                resp.raise_for_status()
                data = resp.json()
                if not isinstance(data, dict):
                    raise DataSourceError(f"Invalid DexScreener response: {data}")
                return data
            except (requests.RequestException, ValueError, DataSourceError) as e:
                last_err = e
                log.debug("dexscreener_call_retry", url=url, attempt=attempt, error=str(e))
                backoff_sleep(attempt)
        raise DataSourceError(f"DexScreener failed after retries: {last_err}")

    @staticmethod
    def _dec(val: Any) -> Optional[Decimal]:
        if val is None or isinstance(val, bool):
            return None
        try:
            d = Decimal(str(val))
        except (InvalidOperation, ValueError):
            return None
        return d if d.is_finite() else None

    def get_pairs(self, token_address: str) -> List[TradingPair]:
        token = token_address.lower()
        data = self._call(f"tokens/{token}")
        pairs = data.get("pairs") if isinstance(data.get("pairs"), list) else []
        out: List[TradingPair] = []
        for p in pairs:
            if not isinstance(p, dict):
                continue
            chain_id = str(p.get("chainId") or "")
            if self._chain_id and chain_id != self._chain_id:
                continue
            base = p.get("baseToken") or {}
            quote = p.get("quoteToken") or {}
            base_addr = str(base.get("address") or "").lower()
            quote_addr = str(quote.get("address") or "").lower()
            if token not in (base_addr, quote_addr):
                continue
            out.append(
                TradingPair(
                    base_token_address=base_addr,
                    quote_token_address=quote_addr,
                    liquidity_usd=self._dec((p.get("liquidity") or {}).get("usd")),
                    price_usd=self._dec(p.get("priceUsd")),
                    is_reversed=base_addr != token,
                    pair_address=str(p.get("pairAddress") or "").lower(),
                    dex_id=str(p.get("dexId") or ""),
                    chain_id=chain_id,
                    base_symbol=base.get("symbol"),
                    quote_symbol=quote.get("symbol"),
                )
            )
        log.debug("dexscreener_pairs", token=token, count=len(out))
        return out
