import threading
import unittest
from decimal import Decimal

from walletflow.adapters.pricing.price_adapter import PriceAdapter
from walletflow.adapters.pricing.price_cache import PriceCache
from walletflow.config import settings
from walletflow.core.dto import TradingPair
from walletflow.core.errors import DataSourceError
from walletflow.core.models import PriceResult
from walletflow.ports.pair_port import TradingPairPort

TOKEN_A = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
TOKEN_B = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
TOKEN_C = "0xcccccccccccccccccccccccccccccccccccccccc"
WPLS = settings.WRAPPED_NATIVE_ADDRESS
DAI = "0xefd766ccb38eaf1dfd701853bfce31359239f305"


class _FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class _StaticPairs(TradingPairPort):
    def __init__(self, prices=None, failing=None) -> None:
        self._prices = {k.lower(): Decimal(v) for k, v in (prices or {}).items()}
        self._failing = {k.lower(): exc for k, exc in (failing or {}).items()}
        self._lock = threading.Lock()
        self.calls = []

    def get_pairs(self, token_address):
        token = token_address.lower()
        with self._lock:
            self.calls.append(token)
        if token in self._failing:
            raise self._failing[token]
        if token not in self._prices:
            return []
        return [
            TradingPair(
                base_token_address=token,
                quote_token_address=WPLS,
                liquidity_usd=Decimal("100000"),
                price_usd=self._prices[token],
                pair_address="0xpair",
                dex_id="pulsex",
            )
        ]


class _BlockingPairs(_StaticPairs):
    def __init__(self, prices, blocked, release) -> None:
        super().__init__(prices)
        self._blocked = blocked
        self._release = release

    def get_pairs(self, token_address):
        if token_address.lower() == self._blocked:
            self._release.wait(5)
        return super().get_pairs(token_address)


class PriceCacheTests(unittest.TestCase):
    def test_entry_expires_after_ttl(self) -> None:
        clock = _FakeClock()
        cache = PriceCache(ttl_sec=300, clock=clock)
        result = PriceResult(TOKEN_A, Decimal("1"), "test")
        cache.set("0xAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA", result)

        clock.now = 299
        self.assertIs(cache.get(TOKEN_A), result)
        clock.now = 300
        self.assertIsNone(cache.get(TOKEN_A))
        self.assertEqual(len(cache), 0)


class PriceAdapterTests(unittest.TestCase):
    def test_stablecoin_priced_at_one(self) -> None:
        pairs = _StaticPairs()
        adapter = PriceAdapter(pairs=pairs)
        result = adapter.get_token_usd_price(DAI)
        self.assertEqual(result.price_usd, Decimal("1"))
        self.assertEqual(pairs.calls, [])

    def test_native_priced_through_wrapped(self) -> None:
        adapter = PriceAdapter(pairs=_StaticPairs({WPLS: "0.00004"}))
        result = adapter.get_token_usd_price(settings.NATIVE_TOKEN_ADDRESS)
        self.assertEqual(result.token_address, settings.NATIVE_TOKEN_ADDRESS)
        self.assertEqual(result.price_usd, Decimal("0.00004"))

    def test_cache_read_through(self) -> None:
        pairs = _StaticPairs({TOKEN_A: "2"})
        adapter = PriceAdapter(pairs=pairs, cache=PriceCache(clock=_FakeClock()))
        adapter.get_token_usd_price(TOKEN_A)
        adapter.get_token_usd_price(TOKEN_A)
        self.assertEqual(pairs.calls, [TOKEN_A])

    def test_misses_are_not_cached(self) -> None:
        pairs = _StaticPairs()
        adapter = PriceAdapter(pairs=pairs, cache=PriceCache(clock=_FakeClock()))
        self.assertIsNone(adapter.get_token_usd_price(TOKEN_A))
        self.assertIsNone(adapter.get_token_usd_price(TOKEN_A))
        self.assertEqual(pairs.calls, [TOKEN_A, TOKEN_A])

    def test_upstream_failure_is_no_price(self) -> None:
        pairs = _StaticPairs(failing={TOKEN_A: DataSourceError("down")})
        self.assertIsNone(PriceAdapter(pairs=pairs).get_token_usd_price(TOKEN_A))

    def test_fanout_isolates_failures(self) -> None:
        pairs = _StaticPairs(
            {TOKEN_A: "1.5", TOKEN_C: "3"},
            failing={TOKEN_B: RuntimeError("boom")},
        )
        adapter = PriceAdapter(pairs=pairs, cache=PriceCache(clock=_FakeClock()), batch_size=2)

        results = adapter.get_prices([TOKEN_A, TOKEN_B, TOKEN_C, TOKEN_A])

        self.assertEqual(list(results), [TOKEN_A, TOKEN_B, TOKEN_C])
        self.assertEqual(results[TOKEN_A].price_usd, Decimal("1.5"))
        self.assertIsNone(results[TOKEN_B])
        self.assertEqual(results[TOKEN_C].price_usd, Decimal("3"))
        self.assertEqual(sorted(pairs.calls), sorted([TOKEN_A, TOKEN_B, TOKEN_C]))

    def test_fanout_uses_cache_first(self) -> None:
        pairs = _StaticPairs({TOKEN_A: "1"})
        cache = PriceCache(clock=_FakeClock())
        cache.set(TOKEN_A, PriceResult(TOKEN_A, Decimal("9"), "cached"))
        results = PriceAdapter(pairs=pairs, cache=cache).get_prices([TOKEN_A])
        self.assertEqual(results[TOKEN_A].price_usd, Decimal("9"))
        self.assertEqual(pairs.calls, [])

    def test_batch_size_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            PriceAdapter(pairs=_StaticPairs(), batch_size=0)


    def test_lookup_stuck_in_one_batch_does_not_starve_the_next(self) -> None:
        release = threading.Event()
        pairs = _BlockingPairs({TOKEN_B: "4"}, blocked=TOKEN_A, release=release)
        adapter = PriceAdapter(
            pairs=pairs,
            cache=PriceCache(clock=_FakeClock()),
            batch_size=1,
            lookup_timeout_sec=0.2,
        )
        try:
            results = adapter.get_prices([TOKEN_A, TOKEN_B])
        finally:
            release.set()

        self.assertIsNone(results[TOKEN_A])
        self.assertEqual(results[TOKEN_B].price_usd, Decimal("4"))


if __name__ == "__main__":
    unittest.main()
