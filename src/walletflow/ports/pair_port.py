from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from walletflow.core.dto import TradingPair


class TradingPairPort(ABC):

    @abstractmethod
    def get_pairs(self, token_address: str) -> List[TradingPair]:
        raise NotImplementedError
