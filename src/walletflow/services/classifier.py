from __future__ import annotations

from typing import List, Optional

from walletflow.core.enums import Direction, TransactionType
from walletflow.core.models import ChainProfile, Transaction, Transfer, default_profile


def _label(tx: Transaction) -> str:
    return (tx.method_label or "").lower()


def has_swap_label(tx: Transaction, profile: ChainProfile) -> bool:
    label = _label(tx)
    return bool(label) and any(k in label for k in profile.swap_method_keywords)


def is_swap_candidate(tx: Transaction, profile: Optional[ChainProfile] = None) -> bool:
    """
    Swap detection from the envelope alone (method label, then router address),
    without looking at transfer legs.
    """
    profile = profile or default_profile()
    return has_swap_label(tx, profile) or profile.is_router(tx.to_address)


def relevant_transfers(tx: Transaction) -> List[Transfer]:
    """Legs that cross the wallet boundary: not internal, direction known."""
    return [
        t for t in tx.transfers
        if not t.is_internal and t.direction is not Direction.UNKNOWN
    ]


def classify(tx: Transaction, wallet: str, profile: Optional[ChainProfile] = None) -> TransactionType:
    """
    Assign one TransactionType to `tx` as seen from `wallet`.

    Rules are checked in order and the first match wins. Method labels are the
    strongest signal, then the router address, then the shape of the legs.
    """
    profile = profile or default_profile()
    wallet = (wallet or "").lower()

    # 1-2. envelope signals
    if is_swap_candidate(tx, profile):
        return TransactionType.SWAP

    legs = relevant_transfers(tx)
    erc20 = [t for t in legs if not profile.is_native(t.token_address)]

    # 3. wallet both gave and got tokens
    erc20_dirs = {t.direction for t in erc20}
    if Direction.SEND in erc20_dirs and Direction.RECEIVE in erc20_dirs:
        return TransactionType.SWAP

    # 4.
    if profile.approval_method_keyword in _label(tx):
        return TransactionType.APPROVAL

    # 5. one-sided movement
    dirs = {t.direction for t in legs}
    if dirs == {Direction.SEND}:
        return TransactionType.SEND
    if dirs == {Direction.RECEIVE}:
        return TransactionType.RECEIVE

    # 6. bare call
    if tx.to_address and tx.value == 0 and not legs:
        return TransactionType.CONTRACT

    # 7. plain native transfer
    if tx.value != 0 and not erc20:
        if tx.from_address == wallet:
            return TransactionType.SEND
        return TransactionType.RECEIVE

    return TransactionType.UNKNOWN
