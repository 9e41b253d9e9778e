from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path

from .measure import format_grams


@dataclass
class ItemReport:
    raw: str
    search_term: str
    chosen_title: str | None = None
    chosen_price: str | None = None
    method: str | None = None
    quantity: int = 0
    total_grams: float | None = None
    status: str = "SKIPPED_NO_MATCH"  # ADDED, DRY_RUN, SKIPPED_NO_MATCH, FAILED


@dataclass
class RunReport:
    timestamp: str
    total: int
    added: int
    skipped: int
    failed: int
    dry_run: bool
    items: list[ItemReport]

    def summary_text(self) -> str:
        lines = [
            f"Run: {self.timestamp}  (dry_run={self.dry_run})",
            f"Total: {self.total}  Added: {self.added}  Skipped: {self.skipped}  Failed: {self.failed}",
            "",
        ]
        for i, it in enumerate(self.items, 1):
            lines.append(f"  {i}. [{it.status}] {it.raw}  (search: {it.search_term})")
            if it.chosen_title:
                weight = f"  {format_grams(it.total_grams)}" if it.total_grams else ""
                lines.append(f"     -> {it.quantity} x {it.chosen_title}  {it.chosen_price or ''}{weight}")
        return "\n".join(lines)

    def write_json(self, path: str = "artifacts/run_report.json") -> str:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(asdict(self), indent=2, ensure_ascii=False))
        return str(out)


def build_report(items: list[ItemReport], *, dry_run: bool) -> RunReport:
    return RunReport(
        timestamp=datetime.now(timezone.utc).isoformat(),
        total=len(items),
        added=sum(1 for i in items if i.status == "ADDED"),
        skipped=sum(1 for i in items if i.status == "SKIPPED_NO_MATCH"),
        failed=sum(1 for i in items if i.status == "FAILED"),
        dry_run=dry_run,
        items=items,
    )
