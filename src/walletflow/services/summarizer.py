from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, List, Optional

import structlog

from walletflow.config import settings
from walletflow.core.amounts import to_decimal, usd_value
from walletflow.core.enums import TransactionType
from walletflow.core.models import (
    ChainProfile,
    FlowLine,
    PriceResult,
    TokenFlow,
    Transaction,
    TransactionSummary,
    default_profile,
)
from walletflow.services.aggregator import aggregate
from walletflow.services.classifier import classify

log = structlog.get_logger(__name__)

PriceLookup = Callable[[str], Optional[PriceResult]]

_SUBSCRIPT = str.maketrans("0123456789", "₀₁₂₃₄₅₆₇₈₉")

_TYPE_NAMES = {
    TransactionType.SWAP: "Swap",
    TransactionType.SEND: "Send",
    TransactionType.RECEIVE: "Receive",
    TransactionType.APPROVAL: "Approve",
    TransactionType.CONTRACT: "Contract Interaction",
    TransactionType.UNKNOWN: "Unknown Transaction",
}


# -------------------------
# Number formatting
# -------------------------

def _trim(s: str) -> str:
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s


def format_token_amount(raw: int, decimals: int, max_fraction: int = 4) -> str:
    """
    Human amount with thousands separators, e.g. 1500000000000000000000 -> "1,500".

    Amounts below one keep up to 8 fractional digits so dust stays visible.
    """
    amount = abs(to_decimal(raw, decimals))
    if amount == 0:
        return "0"
    places = max_fraction if amount >= 1 else 8
    q = amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    if q == 0:
        return "<" + format(Decimal(1).scaleb(-places), "f")
    return _trim(f"{q:,.{places}f}")


def format_usd(value: Optional[Decimal]) -> str:
    if value is None:
        return "-"
    sign = "-" if value < 0 else ""
    q = abs(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{sign}${q:,.2f}"


def format_token_price(value: Optional[Decimal]) -> str:
    """
    Price with extra precision for cheap tokens.

    Below 0.00001 the run of leading zeros is collapsed into a subscript count:
    0.0000001234 -> "$0.0₍₆₎1234".
    """
    if value is None:
        return "-"
    if value == 0:
        return "$0.00"
    sign = "-" if value < 0 else ""
    a = abs(value)

    if a < Decimal("0.00001"):
        digits = format(a, "f").split(".")[1]
        zeros = len(digits) - len(digits.lstrip("0"))
        significant = digits[zeros:zeros + 4]
        return f"{sign}$0.0₍{str(zeros).translate(_SUBSCRIPT)}₎{significant}"

    if a < Decimal("0.01"):
        q = a.quantize(Decimal("0.00001"), rounding=ROUND_HALF_UP)
        return f"{sign}${q:,.5f}"

    q = a.quantize(Decimal("0.00001"), rounding=ROUND_HALF_UP)
    text = f"{q:,.5f}".rstrip("0")
    whole, frac = text.split(".")
    return f"{sign}${whole}.{frac.ljust(2, '0')}"


def short_address(addr: str) -> str:
    if not addr or len(addr) <= 12:
        return addr or ""
    return f"{addr[:6]}...{addr[-4:]}"


# -------------------------
# Labels
# -------------------------

def protocol_name(address: Optional[str]) -> Optional[str]:
    if not address:
        return None
    return settings.PROTOCOL_LABELS.get(address.lower())


def method_name(tx: Transaction, tx_type: TransactionType) -> str:
    """The decoded method label when upstream has one, else a name for the type."""
    label = (tx.method_label or "").strip()
    if label and "unknown" not in label.lower():
        return label
    return _TYPE_NAMES[tx_type]


def _leg_text(lines: List[FlowLine]) -> str:
    return " + ".join(
        f"{f.amount_display} {f.symbol or short_address(f.token_address)}" for f in lines
    )


def describe(summary: TransactionSummary) -> str:
    sent = _leg_text(summary.sent)
    received = _leg_text(summary.received)
    t = summary.type

    if t is TransactionType.SWAP:
        if not sent and not received:
            return "Swap (legs unknown)"
        return f"Swap {sent or '?'} for {received or '?'}"
    if t is TransactionType.SEND:
        return f"Sent {sent}" if sent else "Send"
    if t is TransactionType.RECEIVE:
        return f"Received {received}" if received else "Receive"
    if t is TransactionType.APPROVAL:
        return "Approve"
    if t is TransactionType.CONTRACT:
        return summary.method_name or _TYPE_NAMES[t]
    return _TYPE_NAMES[TransactionType.UNKNOWN]


# -------------------------
# Composite
# -------------------------

def _safe_lookup(price_lookup: Optional[PriceLookup], token: str, tx_hash: str) -> Optional[PriceResult]:
    if price_lookup is None:
        return None
    try:
        return price_lookup(token)
    except Exception as e:
        log.warning("price_lookup_failed", token=token, tx_hash=tx_hash, error=str(e))
        return None


def flow_lines(
    flows: List[TokenFlow],
    price_lookup: Optional[PriceLookup],
    tx_hash: str = "",
) -> List[FlowLine]:
    prices: Dict[str, Optional[PriceResult]] = {}
    lines: List[FlowLine] = []
    for f in flows:
        if f.token_address not in prices:
            prices[f.token_address] = _safe_lookup(price_lookup, f.token_address, tx_hash)
        price = prices[f.token_address]
        lines.append(
            FlowLine(
                token_address=f.token_address,
                symbol=f.symbol,
                amount=f.net_amount,
                decimals=f.decimals,
                amount_display=format_token_amount(f.net_amount, f.decimals),
                usd=usd_value(f.net_amount, f.decimals, price.price_usd if price else None),
                price=price,
            )
        )
    return lines


def summarize(
    tx: Transaction,
    wallet: str,
    price_lookup: Optional[PriceLookup] = None,
    profile: Optional[ChainProfile] = None,
) -> TransactionSummary:
    """
    Classify, aggregate and price one transaction for `wallet`.

    A missing or failing price only drops the USD figure for that token.
    """
    profile = profile or default_profile()
    wallet = (wallet or "").lower()

    tx_type = classify(tx, wallet, profile)
    lines = flow_lines(aggregate(tx, wallet, profile), price_lookup, tx.hash)

    summary = TransactionSummary(
        hash=tx.hash,
        type=tx_type,
        flows=lines,
        method_name=method_name(tx, tx_type),
        protocol=protocol_name(tx.to_address),
        status=tx.status,
        timestamp=tx.timestamp,
        wallet=wallet,
    )
    summary.description = describe(summary)
    return summary
