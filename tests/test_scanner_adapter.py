import unittest
from unittest import mock

import requests

from walletflow.adapters.chain.scanner_adapter import ScannerHistoryAdapter, decode_cursor, encode_cursor
from walletflow.core.errors import DataSourceError

WALLET = "0x1111111111111111111111111111111111111111"
ROUTER = "0x165c3410fc91ef562c50559f7d2289febed552d9"
POOL = "0x5555555555555555555555555555555555555555"
TOKEN_A = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"


def _resp(payload, status=200):
    r = mock.Mock()
    r.status_code = status
    r.json.return_value = payload
    if status >= 400:
        r.raise_for_status.side_effect = requests.HTTPError(f"{status}")
    else:
        r.raise_for_status.return_value = None
    return r


class _RoutedSession:
    """Answers GETs by URL suffix."""

    def __init__(self, routes) -> None:
        self._routes = routes
        self.calls = []

    def get(self, url, params=None, timeout=None, headers=None):
        self.calls.append((url, dict(params or {})))
        for suffix, payload in self._routes.items():
            if url.endswith(suffix):
                return payload if isinstance(payload, mock.Mock) else _resp(payload)
        return _resp({"items": []})


TX_ITEM = {
    "hash": "0xswap",
    "from": {"hash": "0x1111111111111111111111111111111111111111"},
    "to": {"hash": ROUTER},
    "value": "1000",
    "method": "swapExactETHForTokens",
    "status": "ok",
    "block_number": 123,
    "timestamp": "2024-01-01T00:00:00Z",
    "fee": {"type": "actual", "value": "21000"},
    "transaction_types": ["contract_call", "token_transfer", "coin_transfer"],
    "token_transfers": None,
}

TOKEN_TRANSFERS = {
    "items": [
        {
            "from": {"hash": POOL},
            "to": {"hash": WALLET},
            "token": {"address": TOKEN_A, "symbol": "AAA", "name": "Token A", "decimals": "18", "type": "ERC-20"},
            "total": {"value": "5000", "decimals": "18"},
        },
        {
            "from": {"hash": POOL},
            "to": {"hash": WALLET},
            "token": {"address": "0xnft", "type": "ERC-721"},
            "total": {"token_id": "1"},
        },
    ]
}

INTERNAL = {
    "items": [
        {"from": {"hash": ROUTER}, "to": {"hash": WALLET}, "value": "7", "success": True},
        {"from": {"hash": ROUTER}, "to": {"hash": POOL}, "value": "0", "success": True},
        {"from": {"hash": ROUTER}, "to": {"hash": WALLET}, "value": "9", "success": False},
    ]
}


@mock.patch("walletflow.adapters.chain.scanner_adapter.backoff_sleep", lambda attempt: None)
class ScannerHistoryAdapterTests(unittest.TestCase):
    def _adapter(self, session, **kw):
        return ScannerHistoryAdapter(
            base_url="https://scan.test/api/v2/",
            requests_per_sec=1000,
            max_retries=2,
            session=session,
            **kw,
        )

    def test_maps_transaction_and_follow_up_legs(self) -> None:
        session = _RoutedSession({
            f"addresses/{WALLET}/transactions": {
                "items": [TX_ITEM],
                "next_page_params": {"block_number": 122, "index": 5, "items_count": 50},
            },
            "transactions/0xswap/token-transfers": TOKEN_TRANSFERS,
            "transactions/0xswap/internal-transactions": INTERNAL,
        })
        page = self._adapter(session).fetch_page(WALLET)

        self.assertEqual(len(page.transactions), 1)
        tx = page.transactions[0]
        self.assertEqual(tx.from_address, WALLET)
        self.assertEqual(tx.to_address, ROUTER)
        self.assertEqual(tx.method_label, "swapExactETHForTokens")
        self.assertEqual(tx.fee, "21000")
        self.assertEqual(tx.category, "contract_call,token_transfer,coin_transfer")
        self.assertEqual(len(tx.transfers), 2)

        erc20, native = tx.transfers
        self.assertEqual(erc20.token_address, TOKEN_A)
        self.assertEqual(erc20.raw_amount, "5000")
        self.assertEqual(erc20.symbol, "AAA")
        self.assertTrue(native.is_native)
        self.assertEqual(native.raw_amount, "7")

        self.assertEqual(decode_cursor(page.cursor), {"block_number": "122", "index": "5", "items_count": "50"})
        self.assertEqual(session.calls[0][1], {"filter": "to | from"})

    def test_cursor_passed_back_as_params(self) -> None:
        session = _RoutedSession({f"addresses/{WALLET}/transactions": {"items": [], "next_page_params": None}})
        cursor = encode_cursor({"block_number": 122, "index": 5})
        page = self._adapter(session).fetch_page(WALLET, cursor)

        self.assertIsNone(page.cursor)
        self.assertEqual(session.calls[0][1], {"filter": "to | from", "block_number": "122", "index": "5"})

    def test_inline_transfers_skip_follow_up(self) -> None:
        item = dict(TX_ITEM, token_transfers=TOKEN_TRANSFERS["items"][:1], transaction_types=["token_transfer"])
        session = _RoutedSession({f"addresses/{WALLET}/transactions": {"items": [item]}})
        page = self._adapter(session).fetch_page(WALLET)

        self.assertEqual(len(session.calls), 1)
        self.assertEqual(len(page.transactions[0].transfers), 1)

    def test_method_from_decoded_input(self) -> None:
        item = dict(TX_ITEM, method=None, transaction_types=[], decoded_input={"method_call": "approve(address spender, uint256 amount)"})
        session = _RoutedSession({f"addresses/{WALLET}/transactions": {"items": [item]}})
        tx = self._adapter(session).fetch_page(WALLET).transactions[0]
        self.assertEqual(tx.method_label, "approve")
        self.assertEqual(tx.transfers, [])

    def test_retries_then_raises(self) -> None:
        session = _RoutedSession({f"addresses/{WALLET}/transactions": _resp({}, status=503)})
        with self.assertRaises(DataSourceError):
            self._adapter(session).fetch_page(WALLET)
        self.assertEqual(len(session.calls), 2)

    def test_rate_limited_response_is_retried(self) -> None:
        responses = [_resp({}, status=429), _resp({"items": []})]
        session = mock.Mock()
        session.get.side_effect = responses
        page = self._adapter(session).fetch_page(WALLET)
        self.assertEqual(page.transactions, [])
        self.assertEqual(session.get.call_count, 2)


if __name__ == "__main__":
    unittest.main()
