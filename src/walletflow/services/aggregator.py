from __future__ import annotations

from typing import Dict, List, Optional

from walletflow.core.enums import Direction, TransactionType
from walletflow.core.models import ChainProfile, TokenFlow, Transaction, Transfer, default_profile
from walletflow.services.classifier import classify


class _TokenInfo:
    __slots__ = ("decimals", "symbol", "name")

    def __init__(self, decimals: int, symbol: Optional[str], name: Optional[str]) -> None:
        self.decimals = decimals
        self.symbol = symbol
        self.name = name


def _accumulate(tx: Transaction, wallet: str, profile: ChainProfile):
    """
    Net signed amount per token plus the metadata of the first leg seen.

    Indexers list every hop of a router's routing (wallet -> router -> pool ->
    router -> wallet); only legs touching the wallet survive, the top-level
    value is counted once, and wrap legs inside swaps are dropped.
    """
    wallet = (wallet or "").lower()
    totals: Dict[str, int] = {}
    info: Dict[str, _TokenInfo] = {}

    # 1. top-level native value: out when the wallet sent it, in when it
    #    received it from someone else; a self-send moves nothing
    seeded_value = 0
    seeded_direction = Direction.UNKNOWN
    if wallet and tx.value != 0 and tx.from_address != tx.to_address:
        if tx.from_address == wallet:
            seeded_direction = Direction.SEND
        elif tx.to_address == wallet:
            seeded_direction = Direction.RECEIVE
    if seeded_direction is not Direction.UNKNOWN:
        seeded_value = tx.value
        totals[profile.native_address] = (
            -tx.value if seeded_direction is Direction.SEND else tx.value
        )
        info[profile.native_address] = _TokenInfo(
            profile.native_decimals, profile.native_symbol, profile.native_name
        )

    is_swap = classify(tx, wallet, profile) is TransactionType.SWAP
    duplicate_pending = seeded_value != 0

    for t in tx.transfers:
        if t.is_internal or t.direction is Direction.UNKNOWN:
            continue

        # 2. native record mirroring the seeded value; skipped once
        if (
            duplicate_pending
            and profile.is_native(t.token_address)
            and t.direction is seeded_direction
            and t.raw_amount == seeded_value
        ):
            duplicate_pending = False
            continue

        # 3. router wrap/unwrap artifacts
        if is_swap and profile.is_wrapped_native(t.token_address):
            continue

        # 4.
        signed = t.raw_amount if t.direction is Direction.RECEIVE else -t.raw_amount
        totals[t.token_address] = totals.get(t.token_address, 0) + signed
        if t.token_address not in info:
            info[t.token_address] = _token_info(t, profile)

    # 5. round trips cancel out entirely
    return {k: v for k, v in totals.items() if v != 0}, info


def _token_info(t: Transfer, profile: ChainProfile) -> _TokenInfo:
    if profile.is_native(t.token_address):
        return _TokenInfo(
            profile.native_decimals,
            t.symbol or profile.native_symbol,
            t.name or profile.native_name,
        )
    return _TokenInfo(t.decimals, t.symbol, t.name)


def aggregate_map(tx: Transaction, wallet: str, profile: Optional[ChainProfile] = None) -> Dict[str, int]:
    """Net amount per token address; zero entries are omitted."""
    totals, _ = _accumulate(tx, wallet, profile or default_profile())
    return totals


def aggregate(tx: Transaction, wallet: str, profile: Optional[ChainProfile] = None) -> List[TokenFlow]:
    """
    Deduplicated net flows of `tx` across the boundary of `wallet`, in the
    order tokens were first seen. Pure: the same input always yields the same
    list.
    """
    totals, info = _accumulate(tx, wallet, profile or default_profile())
    return [
        TokenFlow(
            token_address=token,
            net_amount=net,
            decimals=info[token].decimals,
            symbol=info[token].symbol,
            name=info[token].name,
        )
        for token, net in totals.items()
    ]
