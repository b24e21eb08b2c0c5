from __future__ import annotations

from typing import Optional

import structlog

from walletflow.config import settings
from walletflow.core.amounts import parse_decimals, parse_raw_amount, parse_raw_amount_strict
from walletflow.core.dto import RawTransaction, RawTransfer
from walletflow.core.enums import Direction, TxStatus
from walletflow.core.errors import MalformedInputError
from walletflow.core.models import ChainProfile, Transaction, Transfer, default_profile

log = structlog.get_logger(__name__)


_SUCCESS_STATUSES = {"ok", "success", "1", "true"}
_FAILED_STATUSES = {"error", "failed", "failure", "reverted", "0", "false"}


def _lower(addr: Optional[str]) -> str:
    return (addr or "").strip().lower()


def resolve_direction(from_address: str, to_address: str, wallet: str) -> Direction:
    """
    Direction of a movement as seen from `wallet`.

    Only lower-cased equality counts; a transfer between two other parties is
    UNKNOWN rather than guessed.
    """
    w = _lower(wallet)
    if not w:
        return Direction.UNKNOWN
    if _lower(to_address) == w:
        return Direction.RECEIVE
    if _lower(from_address) == w:
        return Direction.SEND
    return Direction.UNKNOWN


def _token_key(raw: RawTransfer, profile: ChainProfile) -> str:
    token = _lower(raw.token_address)
    if raw.is_native or token in (settings.ZERO_ADDRESS, profile.native_address):
        return profile.native_address
    return token


def normalize(
    raw: RawTransfer,
    wallet: str,
    profile: Optional[ChainProfile] = None,
    tx_hash: Optional[str] = None,
) -> Transfer:
    """
    Convert one upstream transfer record into a canonical Transfer for `wallet`.

    Never raises: unparsable amounts become zero and records with a missing
    side get Direction.UNKNOWN.
    """
    profile = profile or default_profile()

    try:
        amount = parse_raw_amount_strict(raw.raw_amount)
    except MalformedInputError as e:
        log.debug("transfer_amount_unparsable", tx_hash=tx_hash, raw_amount=raw.raw_amount, error=str(e))
        amount = 0

    from_addr = _lower(raw.from_address)
    to_addr = _lower(raw.to_address)
    token = _token_key(raw, profile)

    if not from_addr or not to_addr:
        log.warning(
            "transfer_missing_address",
            tx_hash=tx_hash,
            token=token or None,
            field="from_address" if not from_addr else "to_address",
        )
        direction = Direction.UNKNOWN
    elif not token:
        log.warning("transfer_missing_token", tx_hash=tx_hash)
        direction = Direction.UNKNOWN
    else:
        direction = resolve_direction(from_addr, to_addr, wallet)

    if profile.is_native(token):
        decimals = parse_decimals(raw.decimals, default=profile.native_decimals)
        symbol = raw.symbol or profile.native_symbol
        name = raw.name or profile.native_name
    else:
        decimals = parse_decimals(raw.decimals)
        symbol = raw.symbol
        name = raw.name

    # router-to-router hops never belong to the user
    is_internal = bool(raw.is_internal) or (
        profile.is_router(from_addr) and profile.is_router(to_addr)
    )

    return Transfer(
        token_address=token,
        from_address=from_addr,
        to_address=to_addr,
        raw_amount=amount,
        decimals=decimals,
        direction=direction,
        is_internal=is_internal,
        symbol=symbol,
        name=name,
        logo_url=raw.logo_url,
    )


def parse_status(raw_status: Optional[str]) -> TxStatus:
    s = (raw_status or "").strip().lower()
    if s in _SUCCESS_STATUSES:
        return TxStatus.SUCCESS
    if s in _FAILED_STATUSES:
        return TxStatus.FAILED
    return TxStatus.UNKNOWN


def normalize_transaction(
    raw: RawTransaction,
    wallet: str,
    profile: Optional[ChainProfile] = None,
) -> Transaction:
    """Normalize a whole transaction envelope and all its legs for `wallet`."""
    profile = profile or default_profile()

    try:
        value = parse_raw_amount_strict(raw.value) if raw.value not in (None, "") else 0
    except MalformedInputError as e:
        log.warning("transaction_value_unparsable", tx_hash=raw.hash, value=raw.value, error=str(e))
        value = 0

    transfers = tuple(
        normalize(t, wallet, profile=profile, tx_hash=raw.hash) for t in (raw.transfers or [])
    )

    return Transaction(
        hash=raw.hash,
        from_address=_lower(raw.from_address),
        to_address=_lower(raw.to_address),
        value=value,
        method_label=raw.method_label or None,
        category=raw.category or None,
        status=parse_status(raw.status),
        transfers=transfers,
        block_number=parse_raw_amount(raw.block_number),
        timestamp=raw.timestamp,
        fee=parse_raw_amount(raw.fee),
    )
