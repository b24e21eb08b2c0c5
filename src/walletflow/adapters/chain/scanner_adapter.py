from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode

import requests
import structlog

from walletflow.config.settings import (
    SCANNER_BASE_URL,
    SCANNER_MAX_RETRIES,
    SCANNER_REQUESTS_PER_SEC,
    SCANNER_TIMEOUT_SEC,
)

from walletflow.adapters.chain.rate_limiter import SimpleRateLimiter, backoff_sleep
from walletflow.core.dto import RawTransaction, RawTransfer, TransactionPage
from walletflow.core.errors import DataSourceError, RateLimitError
from walletflow.ports.transaction_port import TransactionHistoryPort

log = structlog.get_logger(__name__)


def encode_cursor(next_page_params: Optional[Dict[str, Any]]) -> Optional[str]:
    if not next_page_params:
        return None
    return urlencode(sorted((k, "" if v is None else str(v)) for k, v in next_page_params.items()))


def decode_cursor(cursor: Optional[str]) -> Dict[str, str]:
    if not cursor:
        return {}
    return dict(parse_qsl(cursor, keep_blank_values=True))


def _addr(obj: Any) -> Optional[str]:
    if isinstance(obj, dict):
        h = obj.get("hash")
        return h.lower() if isinstance(h, str) and h else None
    if isinstance(obj, str) and obj:
        return obj.lower()
    return None


class ScannerHistoryAdapter(TransactionHistoryPort):
    """
    Blockscout v2 explorer API (scan.pulsechain.com).

    The address transaction list often leaves `token_transfers` empty, so the
    legs are fetched per transaction when the list says there are some.
    """

    def __init__(
        self,
        base_url: str = SCANNER_BASE_URL,
        requests_per_sec: float = SCANNER_REQUESTS_PER_SEC,
        timeout_sec: int = SCANNER_TIMEOUT_SEC,
        max_retries: int = SCANNER_MAX_RETRIES,
        include_internal: bool = True,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_sec
        self._max_retries = max_retries
        self._include_internal = include_internal

        self._rl = SimpleRateLimiter(requests_per_sec)
        self._session = session or requests.Session()

    # ---------- internal ----------

    def _call(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self._base_url}/{path.lstrip('/')}"
        last_err: Optional[Exception] = None

        for attempt in range(self._max_retries):
            try:
                self._rl.wait()
                resp = self._session.get(
                    url,
                    params=params or {},
                    timeout=self._timeout,
                    headers={"Accept": "application/json"},
                )
                if resp.status_code == 429:
                    raise RateLimitError(f"Scanner rate limited: {url}")
                resp.raise_for_status()
                data = resp.json()
                if not isinstance(data, dict):
                    raise DataSourceError(f"Invalid scanner response: {data!r}")
                return data

            except (requests.RequestException, ValueError, DataSourceError) as e:
                last_err = e
                log.debug("scanner_call_retry", url=url, attempt=attempt, error=str(e))
                backoff_sleep(attempt)

        log.warning("scanner_call_failed", url=url, error=str(last_err))
        raise DataSourceError(f"Scanner failed after retries: {last_err}")

    @staticmethod
    def _items(data: Dict[str, Any]) -> List[Dict[str, Any]]:
        items = data.get("items")
        return [i for i in items if isinstance(i, dict)] if isinstance(items, list) else []

    # ---------- mapping ----------

    @staticmethod
    def _token_transfer(t: Dict[str, Any]) -> Optional[RawTransfer]:
        token = t.get("token") or {}
        token_type = str(token.get("type") or "ERC-20")
        if token_type != "ERC-20":
            return None
        total = t.get("total") or {}
        return RawTransfer(
            token_address=token.get("address") or token.get("address_hash"),
            from_address=_addr(t.get("from")),
            to_address=_addr(t.get("to")),
            raw_amount=total.get("value"),
            decimals=token.get("decimals") or total.get("decimals"),
            symbol=token.get("symbol"),
            name=token.get("name"),
            logo_url=token.get("icon_url"),
        )

    @staticmethod
    def _internal_transfer(t: Dict[str, Any]) -> Optional[RawTransfer]:
        if t.get("success") is False:
            return None
        value = t.get("value")
        if value in (None, "", "0"):
            return None
        return RawTransfer(
            is_native=True,
            from_address=_addr(t.get("from")),
            to_address=_addr(t.get("to")),
            raw_amount=value,
        )

    def _transaction(self, item: Dict[str, Any]) -> Optional[RawTransaction]:
        tx_hash = item.get("hash")
        if not tx_hash:
            return None

        types = item.get("transaction_types") or item.get("tx_types") or []
        transfers: List[RawTransfer] = []

        listed = item.get("token_transfers")
        if isinstance(listed, list) and listed and not item.get("token_transfers_overflow"):
            raw_token_transfers = listed
        elif "token_transfer" in types or item.get("token_transfers_overflow"):
            raw_token_transfers = self._items(self._call(f"transactions/{tx_hash}/token-transfers"))
        else:
            raw_token_transfers = []

        for t in raw_token_transfers:
            mapped = self._token_transfer(t)
            if mapped is not None:
                transfers.append(mapped)

        if self._include_internal and "contract_call" in types:
            for t in self._items(self._call(f"transactions/{tx_hash}/internal-transactions")):
                mapped = self._internal_transfer(t)
                if mapped is not None:
                    transfers.append(mapped)

        fee = item.get("fee") or {}
        method = item.get("method")
        if not method:
            decoded = item.get("decoded_input") or {}
            call = decoded.get("method_call") or ""
            method = call.split("(")[0] or None

        return RawTransaction(
            hash=tx_hash,
            from_address=_addr(item.get("from")),
            to_address=_addr(item.get("to")),
            value=item.get("value"),
            method_label=method,
            category=",".join(types) or None,
            status=item.get("status") or item.get("result"),
            block_number=item.get("block_number") or item.get("block"),
            timestamp=item.get("timestamp"),
            fee=fee.get("value") if isinstance(fee, dict) else None,
            transfers=transfers,
        )

    # ---------- port methods ----------

    def fetch_page(self, address: str, cursor: Optional[str] = None) -> TransactionPage:
        params: Dict[str, Any] = {"filter": "to | from"}
        params.update(decode_cursor(cursor))

        data = self._call(f"addresses/{address.lower()}/transactions", params)

        transactions: List[RawTransaction] = []
        for item in self._items(data):
            tx = self._transaction(item)
            if tx is not None:
                transactions.append(tx)

        next_cursor = encode_cursor(data.get("next_page_params"))
        log.info("scanner_page_fetched", address=address.lower(), count=len(transactions), has_more=bool(next_cursor))
        return TransactionPage(transactions=transactions, cursor=next_cursor)
