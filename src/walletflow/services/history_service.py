from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Set

import structlog

from walletflow.core.dto import RawTransaction
from walletflow.core.models import ChainProfile, PriceResult, Transaction, TransactionSummary, default_profile
from walletflow.ports.price_port import PricePort
from walletflow.ports.transaction_port import TransactionHistoryPort
from walletflow.services.aggregator import aggregate
from walletflow.services.normalizer import normalize_transaction
from walletflow.services.summarizer import summarize

log = structlog.get_logger(__name__)


ProgressFn = Callable[[str, dict], None]


def _noop_progress(event: str, data: dict) -> None:
    return None


class WalletHistoryService:
    """
    Turns a wallet's raw history into display-ready transaction summaries.

    - Paging: follows the provider cursor up to `max_pages`
    - Pricing: one bounded fan-out for every token involved in the batch
    - Perspective: the same raw transaction can be summarized for several wallets
    """

    def __init__(
        self,
        history: TransactionHistoryPort,
        prices: Optional[PricePort] = None,
        profile: Optional[ChainProfile] = None,
    ) -> None:
        self.history = history
        self.prices = prices
        self.profile = profile or default_profile()

    def load(self, address: str, max_pages: int = 1, on_progress: Optional[ProgressFn] = None) -> List[RawTransaction]:
        progress = on_progress or _noop_progress
        addr = address.lower()
        out: List[RawTransaction] = []
        seen: Set[str] = set()
        cursor: Optional[str] = None

        for page_no in range(max(1, int(max_pages))):
            progress("fetch", {"address": addr, "page": page_no + 1})
            page = self.history.fetch_page(addr, cursor)
            for tx in page.transactions:
                # providers repeat boundary items across pages
                if tx.hash in seen:
                    continue
                seen.add(tx.hash)
                out.append(tx)
            progress("fetch_done", {"address": addr, "page": page_no + 1, "count": len(page.transactions)})
            cursor = page.cursor
            if not cursor:
                break

        log.info("history_loaded", address=addr, transactions=len(out))
        return out

    def summarize_transactions(
        self,
        raw_transactions: Iterable[RawTransaction],
        address: str,
        with_prices: bool = True,
    ) -> List[TransactionSummary]:
        addr = address.lower()
        txs: List[Transaction] = [normalize_transaction(r, addr, self.profile) for r in raw_transactions]

        prices: Dict[str, Optional[PriceResult]] = {}
        if with_prices and self.prices is not None:
            prices = self.prices.get_prices(self._tokens_involved(txs, addr))

        lookup = prices.get if prices else None
        return [summarize(tx, addr, lookup, self.profile) for tx in txs]

    def summarize_history(
        self,
        address: str,
        max_pages: int = 1,
        with_prices: bool = True,
        on_progress: Optional[ProgressFn] = None,
    ) -> List[TransactionSummary]:
        raw = self.load(address, max_pages=max_pages, on_progress=on_progress)
        return self.summarize_transactions(raw, address, with_prices=with_prices)

    def summarize_portfolio(
        self,
        addresses: Iterable[str],
        max_pages: int = 1,
        with_prices: bool = True,
        on_progress: Optional[ProgressFn] = None,
    ) -> Dict[str, List[TransactionSummary]]:
        out: Dict[str, List[TransactionSummary]] = {}
        for a in addresses:
            addr = a.lower()
            if addr in out:
                continue
            out[addr] = self.summarize_history(
                addr, max_pages=max_pages, with_prices=with_prices, on_progress=on_progress
            )
        return out

    # -------------------------
    # Helpers
    # -------------------------

    def _tokens_involved(self, txs: List[Transaction], address: str) -> List[str]:
        tokens: List[str] = []
        seen: Set[str] = set()
        for tx in txs:
            for flow in aggregate(tx, address, self.profile):
                if flow.token_address not in seen:
                    seen.add(flow.token_address)
                    tokens.append(flow.token_address)
        return tokens
