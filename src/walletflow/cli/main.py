from __future__ import annotations

import argparse
import datetime as dt
import json
import sys
import time
from typing import List, Optional

from walletflow.config.logging import configure_logging
from walletflow.core.errors import WalletFlowError
from walletflow.io.output_writer import write_history_json, write_history_md
from walletflow.io.schemas import history_to_dict
from walletflow.services.history_service import WalletHistoryService
from walletflow.services.summarizer import short_address

from walletflow.adapters.chain.scanner_adapter import ScannerHistoryAdapter
from walletflow.adapters.chain.static_history_adapter import StaticHistoryAdapter
from walletflow.adapters.pricing.price_adapter import PriceAdapter


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="walletflow", description="PulseChain wallet history with net token flows")
    p.add_argument("--address", action="append", default=[], help="Wallet address (repeat for several wallets)")
    p.add_argument("--pages", type=int, default=1, help="History pages to fetch per wallet")
    p.add_argument("--out", default="out", help="Output folder")
    p.add_argument("--no-prices", action="store_true", help="Skip USD pricing")
    p.add_argument("--use-static", action="store_true", help="Use static adapter (dev/testing)")
    p.add_argument("--json-only", action="store_true", help="Print history JSON to stdout instead of writing files")
    p.add_argument("--log-level", default=None, help="Log level (default from WALLETFLOW_LOG_LEVEL)")
    return p


def _make_progress_reporter(quiet: bool = False):
    start_time = time.time()
    is_tty = sys.stderr.isatty()

    def _ts() -> str:
        return dt.datetime.now().strftime("%H:%M:%S")

    def _print_line(message: str) -> None:
        if is_tty:
            sys.stderr.write("\r" + message.ljust(88))
            sys.stderr.flush()
        else:
            print(message, file=sys.stderr)

    def _clear_line() -> None:
        if is_tty:
            sys.stderr.write("\r" + (" " * 88) + "\r")
            sys.stderr.flush()

    def progress(event: str, data: dict) -> None:
        if quiet and event != "error":
            return
        if event == "start":
            print(f"[{_ts()}] Loading {data['wallets']} wallet(s) • {data['pages']} page(s) each", file=sys.stderr)
            return
        if event == "fetch":
            addr = short_address(str(data.get("address", "")))
            _print_line(f"Fetching page {data.get('page', 1)} for {addr}...")
            return
        if event == "fetch_done":
            _print_line(f"Fetched page {data.get('page', 1)}: {data.get('count', 0)} transaction(s)")
            return
        if event == "done":
            _clear_line()
            elapsed = time.time() - start_time
            print(f"[{_ts()}] Done in {elapsed:.1f}s • {data['transactions']} transaction(s)", file=sys.stderr)
            return
        if event == "error":
            _clear_line()
            print(f"[{_ts()}] Error: {data.get('message', 'Unknown error')}", file=sys.stderr)

    return progress


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(level=args.log_level)

    addresses = [a.strip().lower() for a in args.address if a and a.strip()]
    if not addresses:
        print("Missing --address", file=sys.stderr)
        return 2
    if args.pages < 1:
        print("--pages must be >= 1", file=sys.stderr)
        return 2

    progress = _make_progress_reporter(quiet=args.json_only)

    # Ports
    if args.use_static:
        history = StaticHistoryAdapter()
        prices = None
        adapter_label = "StaticHistoryAdapter (dev/testing)"
    else:
        history = ScannerHistoryAdapter()
        prices = None if args.no_prices else PriceAdapter()
        adapter_label = "ScannerHistoryAdapter"

    svc = WalletHistoryService(history=history, prices=prices)
    if not args.json_only:
        print(f"Adapter: {adapter_label}", file=sys.stderr)

    progress("start", {"wallets": len(addresses), "pages": args.pages})
    try:
        result = svc.summarize_portfolio(
            addresses,
            max_pages=args.pages,
            with_prices=not args.no_prices,
            on_progress=progress,
        )
    except WalletFlowError as exc:
        progress("error", {"message": f"{exc.__class__.__name__}: {exc}"})
        return 1
    progress("done", {"transactions": sum(len(v) for v in result.values())})

    if args.json_only:
        json.dump(history_to_dict(result), sys.stdout, indent=2, ensure_ascii=False)
        sys.stdout.write("\n")
        return 0

    # Outputs
    json_path = write_history_json(result, args.out)
    md_path = write_history_md(result, args.out)
    print(f"Wrote: {json_path}")
    print(f"Wrote: {md_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
