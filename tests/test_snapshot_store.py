import json
import threading

import pytest

from tuition_ledger.core.exceptions import (
    AlreadyRegisteredError,
    DuplicateRequestError,
    InsufficientAmountError,
    RequestNotFoundError,
)
from tuition_ledger.core.enums import RegistrationRequestStatus
from tuition_ledger.core.models import RegistrationRequest
from tuition_ledger.ledger.core import TuitionLedger
from tuition_ledger.snapshot.mirror import SnapshotMirror
from tuition_ledger.snapshot.store import COLLECTIONS, SnapshotStore, decode_amount, encode_amount

from support import DEADLINE, NOW, ONE_UNIT, SEMESTER, STUDENT_1, STUDENT_2, seed


def test_load_missing_file_returns_empty_document(store: SnapshotStore) -> None:
    data = store.load()
    for name in COLLECTIONS:
        assert data[name] == []
    assert data["lastUpdated"] is None
    assert store.path.parent.exists()


def test_save_writes_whole_document(store: SnapshotStore) -> None:
    data = store.load()
    data["students"].append({"wallet": STUDENT_1, "studentId": "SV001"})
    store.save(data)

    on_disk = json.loads(store.path.read_text(encoding="utf-8"))
    assert on_disk["students"] == [{"wallet": STUDENT_1, "studentId": "SV001"}]
    assert on_disk["lastUpdated"] is not None
    assert not store.path.with_name(f"{store.path.name}.tmp").exists()


def test_corrupt_snapshot_is_quarantined(store: SnapshotStore) -> None:
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text("{not json", encoding="utf-8")

    data = store.load()

    assert data["students"] == []
    assert not store.path.exists()
    quarantined = list(store.path.parent.glob("state.json.corrupt-*"))
    assert len(quarantined) == 1
    assert quarantined[0].read_text(encoding="utf-8") == "{not json"


def test_missing_collections_are_filled_in(store: SnapshotStore) -> None:
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text(json.dumps({"students": [{"wallet": STUDENT_1, "studentId": "SV001"}]}))

    data = store.load()
    assert len(data["students"]) == 1
    assert data["payments"] == []
    assert data["registrationRequests"] == []


def test_amounts_are_decimal_strings() -> None:
    big = 123_456_789 * 10**18
    assert encode_amount(big) == "123456789000000000000000000"
    assert decode_amount("123456789000000000000000000") == big
    assert decode_amount(5) == 5


def test_add_student_is_idempotent_per_wallet(store: SnapshotStore) -> None:
    assert store.add_student("0x" + "ab" * 20, "SV001") is True
    assert store.add_student("0x" + "AB" * 20, "SV001") is False
    assert len(store.load()["students"]) == 1


def test_set_scholarship_upserts(store: SnapshotStore) -> None:
    store.set_scholarship(STUDENT_1, 20)
    store.set_scholarship(STUDENT_1, 50)
    scholarships = store.load()["scholarships"]
    assert len(scholarships) == 1
    assert scholarships[0]["percent"] == 50
    assert "updatedAt" in scholarships[0]


def test_fee_schedule_upsert_and_close(store: SnapshotStore) -> None:
    store.add_fee_schedule(SEMESTER, ONE_UNIT, DEADLINE)
    store.add_fee_schedule(SEMESTER, 2 * ONE_UNIT, DEADLINE + 1)

    fees = store.load()["feeSchedules"]
    assert len(fees) == 1
    assert fees[0]["amount"] == str(2 * ONE_UNIT)
    assert fees[0]["deadline"] == DEADLINE + 1
    assert fees[0]["isActive"] is True

    assert store.close_fee_schedule(SEMESTER) is True
    assert store.load()["feeSchedules"][0]["isActive"] is False
    assert store.close_fee_schedule("1999-1") is False


def test_add_payment_is_idempotent(store: SnapshotStore) -> None:
    assert store.add_payment(STUDENT_1, SEMESTER, ONE_UNIT, NOW, payment_id=1) is True
    assert store.add_payment(STUDENT_1, SEMESTER, ONE_UNIT, NOW, payment_id=1) is False

    payments = store.load()["payments"]
    assert len(payments) == 1
    record = payments[0]
    assert record["amount"] == str(ONE_UNIT)
    assert record["remaining"] == str(ONE_UNIT)
    assert record["refunded"] is False
    assert record["paymentId"] == 1
    assert record["timestamp"] == NOW


def test_update_payment(store: SnapshotStore) -> None:
    store.add_payment(STUDENT_1, SEMESTER, 1000, NOW)
    assert store.update_payment(STUDENT_1, SEMESTER, 600) is True
    assert store.student_payments(STUDENT_1)[0]["remaining"] == "600"
    assert store.student_payments(STUDENT_1)[0]["refunded"] is False

    assert store.update_payment(STUDENT_1, SEMESTER, 0, refunded=True) is True
    assert store.student_payments(STUDENT_1)[0]["refunded"] is True

    assert store.update_payment(STUDENT_2, SEMESTER, 0) is False
    assert store.student_payments(STUDENT_2) == []


# --- Registration requests ---
def test_registration_request_approval_flow(store: SnapshotStore) -> None:
    record = store.add_registration_request(STUDENT_1, "SV001")
    assert record["status"] == "pending"
    assert [r["wallet"] for r in store.pending_requests()] == [STUDENT_1]
    assert store.get_pending_request(STUDENT_1)["studentId"] == "SV001"

    approved = store.approve_registration(STUDENT_1)
    assert approved["status"] == "approved"
    assert "approvedAt" in approved

    request = RegistrationRequest.from_record(approved)
    assert request.status == RegistrationRequestStatus.approved
    assert request.student_id == "SV001"
    assert request.approved_at is not None
    assert request.rejected_at is None
    assert store.pending_requests() == []

    with pytest.raises(RequestNotFoundError):
        store.approve_registration(STUDENT_1)
    with pytest.raises(RequestNotFoundError):
        store.get_pending_request(STUDENT_1)


def test_registration_request_rejection(store: SnapshotStore) -> None:
    store.add_registration_request(STUDENT_1, "SV001")
    rejected = store.reject_registration(STUDENT_1)
    assert rejected["status"] == "rejected"
    assert "rejectedAt" in rejected

    # A resolved request still blocks a new one for the same wallet.
    with pytest.raises(DuplicateRequestError):
        store.add_registration_request(STUDENT_1, "SV001")


def test_registration_request_conflicts(store: SnapshotStore) -> None:
    store.add_registration_request(STUDENT_1, "SV001")
    with pytest.raises(DuplicateRequestError):
        store.add_registration_request(STUDENT_1, "SV002")

    store.add_student(STUDENT_2, "SV002")
    with pytest.raises(AlreadyRegisteredError):
        store.add_registration_request(STUDENT_2, "SV002")

    with pytest.raises(RequestNotFoundError):
        store.reject_registration(STUDENT_2)


# --- Mirror ---
@pytest.mark.asyncio
async def test_mirror_follows_ledger_events(ledger: TuitionLedger, store: SnapshotStore) -> None:
    ledger.events.subscribe(SnapshotMirror(store))

    await seed(ledger, base_amount=1000)
    await ledger.register_student(STUDENT_2, "SV002")
    await ledger.pay_tuition(STUDENT_1, SEMESTER, 1000)
    await ledger.pay_tuition(STUDENT_2, SEMESTER, 1000)
    await ledger.apply_scholarship(STUDENT_1, 30)
    await ledger.process_refund(2)
    await ledger.close_fee_schedule(SEMESTER)

    data = store.load()
    assert [s["studentId"] for s in data["students"]] == ["SV001", "SV002"]
    assert [(s["wallet"], s["percent"]) for s in data["scholarships"]] == [(STUDENT_1, 30)]
    assert data["feeSchedules"][0]["amount"] == "1000"
    assert data["feeSchedules"][0]["isActive"] is False

    by_wallet = {p["wallet"]: p for p in data["payments"]}
    assert by_wallet[STUDENT_1]["paymentId"] == 1
    assert by_wallet[STUDENT_1]["remaining"] == "700"
    assert by_wallet[STUDENT_1]["refunded"] is False
    assert by_wallet[STUDENT_2]["paymentId"] == 2
    assert by_wallet[STUDENT_2]["remaining"] == "0"
    assert by_wallet[STUDENT_2]["refunded"] is True


@pytest.mark.asyncio
async def test_mirror_ignores_rejected_mutations(ledger: TuitionLedger, store: SnapshotStore) -> None:
    ledger.events.subscribe(SnapshotMirror(store))
    await seed(ledger)

    with pytest.raises(InsufficientAmountError):
        await ledger.pay_tuition(STUDENT_1, SEMESTER, 1)

    assert store.load()["payments"] == []


@pytest.mark.asyncio
async def test_mirror_writes_off_the_event_loop_thread(
    ledger: TuitionLedger, store: SnapshotStore, monkeypatch
) -> None:
    threads = []
    real_save = store.save

    def recording_save(data) -> None:
        threads.append(threading.current_thread())
        real_save(data)

    monkeypatch.setattr(store, "save", recording_save)
    ledger.events.subscribe(SnapshotMirror(store))

    await ledger.register_student(STUDENT_1, "SV001")

    assert len(threads) == 1
    assert threads[0] is not threading.current_thread()
    assert store.load()["students"][0]["studentId"] == "SV001"
