from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import FrozenSet, List, Optional, Tuple

from walletflow.config import settings
from walletflow.core.enums import Direction, TransactionType, TxStatus



# Configuration model

@dataclass(frozen=True)
class ChainProfile:
    """
    Chain-specific lookup tables used by classification and pricing.
    """

    native_address: str = settings.NATIVE_TOKEN_ADDRESS
    wrapped_native_address: str = settings.WRAPPED_NATIVE_ADDRESS
    native_symbol: str = settings.NATIVE_SYMBOL
    native_name: str = settings.NATIVE_NAME
    native_decimals: int = settings.NATIVE_DECIMALS
    router_addresses: FrozenSet[str] = frozenset(settings.KNOWN_ROUTER_ADDRESSES)
    swap_method_keywords: Tuple[str, ...] = settings.SWAP_METHOD_KEYWORDS
    approval_method_keyword: str = settings.APPROVAL_METHOD_KEYWORD
    stablecoin_addresses: FrozenSet[str] = frozenset(settings.STABLECOIN_ADDRESSES)
    min_liquidity_usd: Decimal = settings.MIN_PAIR_LIQUIDITY_USD

    def is_native(self, token_address: str) -> bool:
        return token_address == self.native_address

    def is_wrapped_native(self, token_address: str) -> bool:
        return token_address == self.wrapped_native_address

    def is_router(self, address: Optional[str]) -> bool:
        return bool(address) and address.lower() in self.router_addresses


def default_profile() -> ChainProfile:
    return ChainProfile()



# Canonical transaction models

@dataclass(frozen=True)
class Transfer:

    token_address: str
    from_address: str
    to_address: str
    raw_amount: int
    decimals: int = 18
    direction: Direction = Direction.UNKNOWN
    is_internal: bool = False

    symbol: Optional[str] = None
    name: Optional[str] = None
    logo_url: Optional[str] = None


@dataclass(frozen=True)
class Transaction:

    hash: str
    from_address: str
    to_address: str
    value: int
    method_label: Optional[str] = None
    category: Optional[str] = None
    status: TxStatus = TxStatus.UNKNOWN
    transfers: Tuple[Transfer, ...] = ()

    block_number: int = 0
    timestamp: Optional[str] = None
    fee: int = 0


@dataclass(frozen=True)
class TokenFlow:

    token_address: str
    net_amount: int              # signed; negative = outflow
    decimals: int = 18
    symbol: Optional[str] = None
    name: Optional[str] = None



# Pricing models

@dataclass(frozen=True)
class PriceResult:

    token_address: str
    price_usd: Decimal
    source: str
    liquidity_usd: Optional[Decimal] = None



# Summary models

@dataclass(frozen=True)
class FlowLine:

    token_address: str
    symbol: Optional[str]
    amount: int                  # signed raw units
    decimals: int
    amount_display: str
    usd: Optional[Decimal]       # signed like amount
    price: Optional[PriceResult] = None


@dataclass
class TransactionSummary:

    hash: str
    type: TransactionType
    flows: List[FlowLine] = field(default_factory=list)

    method_name: str = ""
    protocol: Optional[str] = None
    description: str = ""
    status: TxStatus = TxStatus.UNKNOWN
    timestamp: Optional[str] = None
    wallet: str = ""

    @property
    def sent(self) -> List[FlowLine]:
        return [f for f in self.flows if f.amount < 0]

    @property
    def received(self) -> List[FlowLine]:
        return [f for f in self.flows if f.amount > 0]

    @property
    def net_usd(self) -> Optional[Decimal]:
        priced = [f.usd for f in self.flows if f.usd is not None]
        if not priced:
            return None
        return sum(priced, Decimal("0"))
