from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

from walletflow.core.enums import TransactionType
from walletflow.core.models import TransactionSummary
from walletflow.io.schemas import history_to_dict
from walletflow.services.summarizer import format_usd, short_address


def write_history_json(
    history: Dict[str, List[TransactionSummary]],
    out_dir: str,
    filename: str = "history.json",
) -> str:
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(history_to_dict(history), f, indent=2, ensure_ascii=False)

    return str(out_path)


def write_history_md(
    history: Dict[str, List[TransactionSummary]],
    out_dir: str,
    filename: str = "history.md",
) -> str:
    """
    Per-wallet transaction table plus a count by type.
    """
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename

    lines = []
    lines.append("# Wallet History\n\n")

    for address, summaries in history.items():
        lines.append(f"## {address}\n\n")
        if not summaries:
            lines.append("_No transactions found._\n\n")
            continue

        counts = {t: 0 for t in TransactionType}
        for s in summaries:
            counts[s.type] += 1
        lines.append(
            "- "
            + " • ".join(f"{t.value}: **{n}**" for t, n in counts.items() if n)
            + "\n\n"
        )

        lines.append("| Tx | Type | Description | Protocol | Net USD |\n")
        lines.append("|---|---|---|---|---|\n")
        for s in summaries:
            desc = s.description.replace("|", "\\|")
            lines.append(
                f"| {short_address(s.hash)} | {s.type.value} | {desc} "
                f"| {s.protocol or ''} | {format_usd(s.net_usd)} |\n"
            )
        lines.append("\n")

    lines.append("## Notes\n\n")
    lines.append("- Amounts are net per token after removing router hops and wrap legs.\n")
    lines.append("- USD values are omitted for tokens without a trustworthy DEX pair.\n")

    with out_path.open("w", encoding="utf-8") as f:
        f.writelines(lines)

    return str(out_path)
