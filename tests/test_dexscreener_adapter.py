import unittest
from decimal import Decimal
from unittest import mock

from walletflow.adapters.pricing.dexscreener_adapter import DexScreenerPairAdapter
from walletflow.config import settings
from walletflow.services.price_resolver import resolve_price

TOKEN = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
OTHER = "0xcccccccccccccccccccccccccccccccccccccccc"
WPLS = settings.WRAPPED_NATIVE_ADDRESS

PAYLOAD = {
    "pairs": [
        {
            "chainId": "pulsechain",
            "dexId": "pulsex",
            "pairAddress": "0xPAIR1",
            "baseToken": {"address": OTHER, "symbol": "OTH"},
            "quoteToken": {"address": TOKEN, "symbol": "AAA"},
            "priceUsd": "12.5",
            "liquidity": {"usd": 9000000},
        },
        {
            "chainId": "pulsechain",
            "dexId": "pulsex",
            "pairAddress": "0xPAIR2",
            "baseToken": {"address": "0xAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA", "symbol": "AAA"},
            "quoteToken": {"address": WPLS, "symbol": "WPLS"},
            "priceUsd": "0.0021",
            "liquidity": {"usd": 45000.5},
        },
        {
            "chainId": "ethereum",
            "dexId": "uniswap",
            "pairAddress": "0xPAIR3",
            "baseToken": {"address": TOKEN},
            "quoteToken": {"address": OTHER},
            "priceUsd": "99",
            "liquidity": {"usd": 1e9},
        },
    ]
}


class DexScreenerPairAdapterTests(unittest.TestCase):
    def _adapter(self, payload):
        resp = mock.Mock()
        resp.raise_for_status.return_value = None
        resp.json.return_value = payload
        session = mock.Mock()
        session.get.return_value = resp
        return DexScreenerPairAdapter(base_url="https://dex.test/latest/dex", requests_per_sec=1000, session=session), session

    def test_pairs_filtered_and_flagged(self) -> None:
        adapter, session = self._adapter(PAYLOAD)
        pairs = adapter.get_pairs(TOKEN)

        self.assertEqual(len(pairs), 2)
        self.assertTrue(pairs[0].is_reversed)
        self.assertFalse(pairs[1].is_reversed)
        self.assertEqual(pairs[1].base_token_address, TOKEN)
        self.assertEqual(pairs[1].liquidity_usd, Decimal("45000.5"))
        self.assertEqual(pairs[1].pair_address, "0xpair2")
        self.assertEqual(session.get.call_args[0][0], f"https://dex.test/latest/dex/tokens/{TOKEN}")

    def test_resolved_price_comes_from_base_side_pair(self) -> None:
        adapter, _ = self._adapter(PAYLOAD)
        result = resolve_price(TOKEN, adapter.get_pairs(TOKEN))
        self.assertEqual(result.price_usd, Decimal("0.0021"))

    def test_no_pairs(self) -> None:
        adapter, _ = self._adapter({"pairs": None})
        self.assertEqual(adapter.get_pairs(TOKEN), [])


if __name__ == "__main__":
    unittest.main()
