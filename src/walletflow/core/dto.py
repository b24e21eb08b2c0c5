from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Union


# Upstream shapes. Every field may be missing; only the normalizer reads these.

@dataclass(frozen=True)
class RawTransfer:
    token_address: Optional[str] = None
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    raw_amount: Optional[Union[str, int]] = None     # decimal or 0x-hex string
    decimals: Optional[Union[str, int]] = None
    symbol: Optional[str] = None
    name: Optional[str] = None
    logo_url: Optional[str] = None
    is_native: bool = False
    is_internal: bool = False


@dataclass(frozen=True)
class RawTransaction:
    hash: str
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    value: Optional[Union[str, int]] = None          # native amount in wei (raw)
    method_label: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    block_number: Optional[Union[str, int]] = None
    timestamp: Optional[str] = None
    fee: Optional[Union[str, int]] = None
    transfers: List[RawTransfer] = field(default_factory=list)


@dataclass(frozen=True)
class TransactionPage:
    transactions: List[RawTransaction]
    cursor: Optional[str] = None


@dataclass(frozen=True)
class TradingPair:
    base_token_address: str
    quote_token_address: str
    liquidity_usd: Optional[Decimal]
    price_usd: Optional[Decimal]
    is_reversed: bool = False
    pair_address: str = ""
    dex_id: str = ""
    chain_id: str = ""
    base_symbol: Optional[str] = None
    quote_symbol: Optional[str] = None
