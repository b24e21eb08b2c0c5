from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from walletflow.core.dto import TransactionPage


class TransactionHistoryPort(ABC):
    """
    Abstract Class for fetching a wallet's raw transaction history, page by page.
    """

    @abstractmethod
    def fetch_page(self, address: str, cursor: Optional[str] = None) -> TransactionPage:
        raise NotImplementedError
