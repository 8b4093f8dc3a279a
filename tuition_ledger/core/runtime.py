"""
Per-process ledger runtime: one ledger, one snapshot store, wired together.

Built once in the application lifespan and kept on `app.state.runtime`;
route dependencies read it from the request instead of module globals.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from tuition_ledger.core.addresses import normalize_wallet
from tuition_ledger.core.config import Settings
from tuition_ledger.ledger.core import TuitionLedger
from tuition_ledger.ledger.settlement import TransferGateway, build_settlement
from tuition_ledger.restore.service import RestoreReport, restore_from_store
from tuition_ledger.snapshot.mirror import SnapshotMirror
from tuition_ledger.snapshot.store import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class LedgerRuntime:
    settings: Settings
    ledger: TuitionLedger
    store: SnapshotStore
    mirror: SnapshotMirror
    restore_report: Optional[RestoreReport] = None


def build_runtime(app_settings: Settings, gateway: Optional[TransferGateway] = None) -> LedgerRuntime:
    settlement = build_settlement(
        app_settings.settlement_mode,
        normalize_wallet(app_settings.university_wallet),
        gateway=gateway,
        transfer_timeout=app_settings.transfer_timeout_seconds,
    )
    store = SnapshotStore(app_settings.snapshot_path)
    return LedgerRuntime(
        settings=app_settings,
        ledger=TuitionLedger(settlement),
        store=store,
        mirror=SnapshotMirror(store),
    )


async def start_runtime(runtime: LedgerRuntime) -> LedgerRuntime:
    """Replay the snapshot (when enabled), then start mirroring new events into it."""
    if runtime.settings.restore_on_startup:
        runtime.restore_report = await restore_from_store(runtime.ledger, runtime.store)
        if runtime.restore_report.failed:
            logger.warning("%s snapshot records could not be restored", runtime.restore_report.failed)
    runtime.ledger.events.subscribe(runtime.mirror)
    logger.info(
        "Ledger ready (%s settlement, snapshot %s)",
        runtime.settings.settlement_mode.value,
        runtime.store.path,
    )
    return runtime


def get_runtime(request: Request) -> LedgerRuntime:
    return request.app.state.runtime


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ledger(request: Request) -> TuitionLedger:
    return get_runtime(request).ledger


def get_store(request: Request) -> SnapshotStore:
    return get_runtime(request).store
