from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from walletflow.core.models import PriceResult


class PricePort(ABC):

    @abstractmethod
    def get_token_usd_price(self, token_address: str) -> Optional[PriceResult]:
        raise NotImplementedError

    def get_prices(self, token_addresses: Iterable[str]) -> Dict[str, Optional[PriceResult]]:
        return {t.lower(): self.get_token_usd_price(t) for t in token_addresses}
