from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Optional

import structlog

from walletflow.core.dto import TradingPair
from walletflow.core.models import ChainProfile, PriceResult, default_profile

log = structlog.get_logger(__name__)


def _liquidity(p: TradingPair) -> Decimal:
    return p.liquidity_usd if p.liquidity_usd is not None else Decimal("0")


def usable_pairs(token_address: str, pairs: Iterable[TradingPair], profile: ChainProfile) -> List[TradingPair]:
    """
    Pairs whose quoted price really is the price of `token_address`.

    Quote-side pairs are dropped outright, never used as a fallback: their
    price belongs to the other token.
    """
    token = token_address.lower()
    out: List[TradingPair] = []
    for p in pairs:
        if p.is_reversed or p.base_token_address.lower() != token:
            continue
        if p.price_usd is None or p.price_usd <= 0:
            continue
        if profile.min_liquidity_usd > 0 and _liquidity(p) < profile.min_liquidity_usd:
            continue
        out.append(p)
    return out


def _deepest(pairs: List[TradingPair]) -> TradingPair:
    best = pairs[0]
    for p in pairs[1:]:
        if _liquidity(p) > _liquidity(best):
            best = p
    return best


def _source(p: TradingPair) -> str:
    parts = ["dexscreener"]
    if p.dex_id:
        parts.append(p.dex_id)
    if p.pair_address:
        parts.append(p.pair_address.lower())
    return ":".join(parts)


def resolve_price(
    token_address: str,
    pairs: Iterable[TradingPair],
    profile: Optional[ChainProfile] = None,
) -> Optional[PriceResult]:
    """
    Pick the single trading pair to price `token_address` from.

    Pairs quoted against wrapped-native win over every other quote asset; the
    deepest one among them is used. Without one, the deepest remaining pair is
    used. Returns None when nothing trustworthy is left.
    """
    profile = profile or default_profile()
    candidates = usable_pairs(token_address, pairs, profile)
    if not candidates:
        log.debug("price_no_usable_pair", token=token_address.lower())
        return None

    native_quoted = [
        p for p in candidates
        if p.quote_token_address.lower() == profile.wrapped_native_address
    ]
    best = _deepest(native_quoted) if native_quoted else _deepest(candidates)

    return PriceResult(
        token_address=token_address.lower(),
        price_usd=best.price_usd,
        source=_source(best),
        liquidity_usd=best.liquidity_usd,
    )
