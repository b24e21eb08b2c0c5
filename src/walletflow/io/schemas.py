from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from walletflow.core.amounts import format_units
from walletflow.core.models import FlowLine, PriceResult, TransactionSummary


def _dec_to_str(x: Optional[Decimal]) -> Optional[str]:
    # keep as string for JSON precision safety
    return format(x, "f") if x is not None else None


def price_to_dict(p: Optional[PriceResult]) -> Optional[Dict[str, Any]]:
    if p is None:
        return None
    return {
        "price_usd": _dec_to_str(p.price_usd),
        "source": p.source,
        "liquidity_usd": _dec_to_str(p.liquidity_usd),
    }


def flow_to_dict(f: FlowLine) -> Dict[str, Any]:
    return {
        "token_address": f.token_address,
        "symbol": f.symbol,
        "amount_raw": str(f.amount),
        "amount": format_units(f.amount, f.decimals),
        "decimals": f.decimals,
        "amount_display": f.amount_display,
        "usd": _dec_to_str(f.usd),
        "price": price_to_dict(f.price),
    }


def summary_to_dict(s: TransactionSummary) -> Dict[str, Any]:
    return {
        "hash": s.hash,
        "wallet": s.wallet,
        "type": s.type.value,
        "status": s.status.value,
        "timestamp": s.timestamp,
        "method": s.method_name,
        "protocol": s.protocol,
        "description": s.description,
        "net_usd": _dec_to_str(s.net_usd),
        "flows": [flow_to_dict(f) for f in s.flows],
    }


def history_to_dict(history: Dict[str, List[TransactionSummary]]) -> Dict[str, Any]:
    return {
        "wallets": [
            {
                "address": address,
                "transaction_count": len(summaries),
                "transactions": [summary_to_dict(s) for s in summaries],
            }
            for address, summaries in history.items()
        ]
    }
