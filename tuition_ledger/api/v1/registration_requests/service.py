"""
Registration requests: self-service sign-up awaiting admin approval.

Requests live only in the snapshot document. Routes that only touch the store
are plain functions so FastAPI runs their file I/O in its threadpool.

Approval registers the student in the ledger first and marks the request
approved only once that succeeded, so a rejected registration (e.g. duplicate
student id) leaves it pending.
"""

import asyncio
import logging
from typing import Any, Dict, List

from tuition_ledger.core.addresses import normalize_wallet, short_wallet
from tuition_ledger.core.exceptions import AlreadyRegisteredError
from tuition_ledger.core.models import RegistrationRequest
from tuition_ledger.ledger.core import TuitionLedger
from tuition_ledger.snapshot.store import SnapshotStore

from .schemas import RegistrationRequestCreate, RegistrationRequestResponse

logger = logging.getLogger(__name__)


def _request_to_response(record: Dict[str, Any]) -> RegistrationRequestResponse:
    return RegistrationRequestResponse.model_validate(RegistrationRequest.from_record(record))


def submit_registration_request(
    ledger: TuitionLedger,
    store: SnapshotStore,
    wallet: str,
    payload: RegistrationRequestCreate,
) -> RegistrationRequestResponse:
    wallet = normalize_wallet(wallet)
    if ledger.get_student(wallet) is not None:
        raise AlreadyRegisteredError("Wallet is already registered")
    record = store.add_registration_request(wallet, payload.student_id.strip())
    logger.info("Registration request from %s for %s", short_wallet(wallet), record["studentId"])
    return _request_to_response(record)


def list_pending_requests(store: SnapshotStore) -> List[RegistrationRequestResponse]:
    return [_request_to_response(r) for r in store.pending_requests()]


async def approve_request(
    ledger: TuitionLedger,
    store: SnapshotStore,
    wallet: str,
) -> RegistrationRequestResponse:
    wallet = normalize_wallet(wallet)
    request = await asyncio.to_thread(store.get_pending_request, wallet)
    await ledger.register_student(wallet, request["studentId"])
    record = await asyncio.to_thread(store.approve_registration, wallet)
    logger.info("Approved registration of %s (%s)", record["studentId"], short_wallet(wallet))
    return _request_to_response(record)


def reject_request(store: SnapshotStore, wallet: str) -> RegistrationRequestResponse:
    wallet = normalize_wallet(wallet)
    record = store.reject_registration(wallet)
    logger.info("Rejected registration of %s", short_wallet(wallet))
    return _request_to_response(record)
