"""
Snapshot store: a single JSON document mirroring the ledger for restart recovery.

Layout:
    {
      "students": [...], "feeSchedules": [...], "scholarships": [...],
      "payments": [...], "registrationRequests": [...], "lastUpdated": "..."
    }

Every mutation reloads the file, applies the change and rewrites the whole
document through a temp file + rename. Amounts are decimal strings.
"""

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from tuition_ledger.core.enums import RegistrationRequestStatus
from tuition_ledger.core.exceptions import (
    AlreadyRegisteredError,
    DuplicateRequestError,
    RequestNotFoundError,
)

logger = logging.getLogger(__name__)

COLLECTIONS = ("students", "feeSchedules", "scholarships", "payments", "registrationRequests")


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _same_wallet(a: str, b: str) -> bool:
    return (a or "").lower() == (b or "").lower()


def encode_amount(value: int) -> str:
    return str(int(value))


def decode_amount(value: Any) -> int:
    return int(str(value))


def empty_document() -> Dict[str, Any]:
    doc: Dict[str, Any] = {name: [] for name in COLLECTIONS}
    doc["lastUpdated"] = None
    return doc


class SnapshotStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> Dict[str, Any]:
        with self._lock:
            self._ensure_dir()
            if not self.path.exists():
                return empty_document()
            try:
                data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
            except json.JSONDecodeError as exc:
                quarantine = self.path.with_name(
                    f"{self.path.name}.corrupt-{datetime.now(timezone.utc):%Y%m%dT%H%M%S}"
                )
                os.replace(self.path, quarantine)
                logger.error("Snapshot %s is not valid JSON (%s); moved to %s", self.path, exc, quarantine)
                return empty_document()
            if not isinstance(data, dict):
                logger.error("Snapshot %s is not a JSON object; starting empty", self.path)
                return empty_document()
            for name in COLLECTIONS:
                if not isinstance(data.get(name), list):
                    data[name] = []
            data.setdefault("lastUpdated", None)
            return data

    def save(self, data: Dict[str, Any]) -> None:
        with self._lock:
            self._ensure_dir()
            data["lastUpdated"] = _utcnow_iso()
            tmp_path = self.path.with_name(f"{self.path.name}.tmp")
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
            logger.debug("Snapshot saved to %s", self.path)

    # --- Students & scholarships ---
    def add_student(self, wallet: str, student_id: str) -> bool:
        with self._lock:
            data = self.load()
            if any(_same_wallet(s.get("wallet"), wallet) for s in data["students"]):
                return False
            data["students"].append(
                {"wallet": wallet, "studentId": student_id, "createdAt": _utcnow_iso()}
            )
            self.save(data)
            return True

    def set_scholarship(self, wallet: str, percent: int) -> None:
        with self._lock:
            data = self.load()
            existing = next(
                (s for s in data["scholarships"] if _same_wallet(s.get("wallet"), wallet)), None
            )
            if existing is not None:
                existing["percent"] = percent
                existing["updatedAt"] = _utcnow_iso()
            else:
                data["scholarships"].append(
                    {"wallet": wallet, "percent": percent, "createdAt": _utcnow_iso()}
                )
            self.save(data)

    # --- Fee schedules ---
    def add_fee_schedule(self, semester: str, amount: int, deadline: int) -> None:
        with self._lock:
            data = self.load()
            existing = next((f for f in data["feeSchedules"] if f.get("semester") == semester), None)
            if existing is not None:
                existing["amount"] = encode_amount(amount)
                existing["deadline"] = deadline
                existing["isActive"] = True
                existing["updatedAt"] = _utcnow_iso()
            else:
                data["feeSchedules"].append(
                    {
                        "semester": semester,
                        "amount": encode_amount(amount),
                        "deadline": deadline,
                        "isActive": True,
                        "createdAt": _utcnow_iso(),
                    }
                )
            self.save(data)

    def close_fee_schedule(self, semester: str) -> bool:
        with self._lock:
            data = self.load()
            existing = next((f for f in data["feeSchedules"] if f.get("semester") == semester), None)
            if existing is None:
                return False
            existing["isActive"] = False
            existing["updatedAt"] = _utcnow_iso()
            self.save(data)
            return True

    # --- Payments ---
    def _find_payment(self, data: Dict[str, Any], wallet: str, semester: str) -> Optional[Dict[str, Any]]:
        return next(
            (
                p for p in data["payments"]
                if _same_wallet(p.get("wallet"), wallet) and p.get("semester") == semester
            ),
            None,
        )

    def add_payment(
        self,
        wallet: str,
        semester: str,
        amount: int,
        timestamp: int,
        payment_id: Optional[int] = None,
        remaining: Optional[int] = None,
        refunded: bool = False,
    ) -> bool:
        """Record a payment once per (wallet, semester). Returns False when it already exists."""
        with self._lock:
            data = self.load()
            if self._find_payment(data, wallet, semester) is not None:
                return False
            record = {
                "wallet": wallet,
                "semester": semester,
                "amount": encode_amount(amount),
                "remaining": encode_amount(amount if remaining is None else remaining),
                "refunded": refunded,
                "timestamp": timestamp,
                "createdAt": _utcnow_iso(),
            }
            if payment_id is not None:
                record["paymentId"] = payment_id
            data["payments"].append(record)
            self.save(data)
            return True

    def update_payment(
        self,
        wallet: str,
        semester: str,
        remaining: int,
        refunded: Optional[bool] = None,
    ) -> bool:
        with self._lock:
            data = self.load()
            record = self._find_payment(data, wallet, semester)
            if record is None:
                logger.warning("No snapshot payment for %s / %s to update", wallet, semester)
                return False
            record["remaining"] = encode_amount(remaining)
            if refunded is not None:
                record["refunded"] = refunded
            record["updatedAt"] = _utcnow_iso()
            self.save(data)
            return True

    def student_payments(self, wallet: str) -> List[Dict[str, Any]]:
        return [p for p in self.load()["payments"] if _same_wallet(p.get("wallet"), wallet)]

    # --- Registration requests ---
    def add_registration_request(self, wallet: str, student_id: str) -> Dict[str, Any]:
        with self._lock:
            data = self.load()
            if any(_same_wallet(r.get("wallet"), wallet) for r in data["registrationRequests"]):
                raise DuplicateRequestError("A registration request already exists for this wallet")
            if any(_same_wallet(s.get("wallet"), wallet) for s in data["students"]):
                raise AlreadyRegisteredError("Wallet is already registered")
            record = {
                "wallet": wallet,
                "studentId": student_id,
                "status": RegistrationRequestStatus.pending.value,
                "createdAt": _utcnow_iso(),
            }
            data["registrationRequests"].append(record)
            self.save(data)
            return dict(record)

    def get_pending_request(self, wallet: str) -> Dict[str, Any]:
        for record in self.load()["registrationRequests"]:
            if (
                _same_wallet(record.get("wallet"), wallet)
                and record.get("status") == RegistrationRequestStatus.pending.value
            ):
                return record
        raise RequestNotFoundError("No pending registration request for this wallet")

    def _resolve_request(self, wallet: str, status: RegistrationRequestStatus, stamp_field: str) -> Dict[str, Any]:
        with self._lock:
            data = self.load()
            record = next(
                (
                    r for r in data["registrationRequests"]
                    if _same_wallet(r.get("wallet"), wallet)
                    and r.get("status") == RegistrationRequestStatus.pending.value
                ),
                None,
            )
            if record is None:
                raise RequestNotFoundError("No pending registration request for this wallet")
            record["status"] = status.value
            record[stamp_field] = _utcnow_iso()
            self.save(data)
            return dict(record)

    def approve_registration(self, wallet: str) -> Dict[str, Any]:
        return self._resolve_request(wallet, RegistrationRequestStatus.approved, "approvedAt")

    def reject_registration(self, wallet: str) -> Dict[str, Any]:
        return self._resolve_request(wallet, RegistrationRequestStatus.rejected, "rejectedAt")

    def pending_requests(self) -> List[Dict[str, Any]]:
        return [
            r for r in self.load()["registrationRequests"]
            if r.get("status") == RegistrationRequestStatus.pending.value
        ]
