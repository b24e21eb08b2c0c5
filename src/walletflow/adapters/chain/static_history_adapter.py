from walletflow.ports.transaction_port import TransactionHistoryPort
from walletflow.core.dto import RawTransaction, TransactionPage
from typing import Optional, Dict, List

class StaticHistoryAdapter(TransactionHistoryPort):
    """In-memory history, split into pages of `page_size`; cursors are offsets."""

    def __init__(self,
                 transactions: Optional[List[RawTransaction]] = None,
                 page_size: int = 50,
                 failing_addresses: Optional[Dict[str, Exception]] = None,
                 ):
        if page_size <= 0:
            raise ValueError("page_size must be > 0")
        self._txs = transactions or []
        self._page_size = page_size
        self._failing = {k.lower(): v for k, v in (failing_addresses or {}).items()}
        self.calls: List[tuple] = []

    def _involves(self, tx: RawTransaction, ad: str) -> bool:
        if (tx.from_address or "").lower() == ad or (tx.to_address or "").lower() == ad:
            return True
        return any(
            (t.from_address or "").lower() == ad or (t.to_address or "").lower() == ad
            for t in tx.transfers
        )

    def fetch_page(self, address, cursor = None):
        ad = address.lower()
        self.calls.append((ad, cursor))
        if ad in self._failing:
            raise self._failing[ad]

        items = [t for t in self._txs if self._involves(t, ad)]
        start = int(cursor) if cursor else 0
        end = start + self._page_size
        next_cursor = str(end) if end < len(items) else None
        return TransactionPage(transactions=items[start:end], cursor=next_cursor)
