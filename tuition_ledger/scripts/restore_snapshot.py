"""
Dry-run a snapshot restore: replay the snapshot into a fresh in-memory ledger
and print the per-record outcome. Nothing is written back to the snapshot.

Usage:
  python -m tuition_ledger.scripts.restore_snapshot
  python -m tuition_ledger.scripts.restore_snapshot --path data/state.json
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from tuition_ledger.core.config import settings
from tuition_ledger.core.logging_config import configure_logging
from tuition_ledger.core.runtime import build_runtime
from tuition_ledger.restore.service import restore_from_store
from tuition_ledger.snapshot.store import SnapshotStore


async def run_restore(path: Optional[Path] = None) -> int:
    runtime = build_runtime(settings)
    store = SnapshotStore(path) if path else runtime.store
    report = await restore_from_store(runtime.ledger, store)

    for item in report.items:
        print(f"  {item}")
    summary = runtime.ledger.get_financial_summary()
    print(f"Restored: {report.restored}, failed: {report.failed}")
    print(f"Students: {runtime.ledger.get_registered_students_count()}")
    print(f"Payments: {runtime.ledger.payment_counter}")
    print(
        f"Collected: {summary.total_collected}, refunded: {summary.total_refunded}, "
        f"available: {summary.available_balance}"
    )
    return 0 if report.ok else 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Replay a snapshot into a fresh ledger (dry run)")
    parser.add_argument("--path", type=Path, default=None, help="Snapshot file (defaults to SNAPSHOT_PATH)")
    args = parser.parse_args()
    configure_logging(settings.log_level)
    return asyncio.run(run_restore(args.path))


if __name__ == "__main__":
    sys.exit(main())
