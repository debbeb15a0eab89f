"""In-memory counters for the voucher validate/apply/rollback/authorize workflow."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Dict

OPERATIONS = ("validate", "apply", "rollback", "authorize", "issue")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class VoucherEventLog:
    last_success_at: datetime | None = None
    last_success_operation: str | None = None
    last_failure_at: datetime | None = None
    last_failure_operation: str | None = None
    last_failure_reason: str | None = None


@dataclass
class VoucherObservabilitySnapshot:
    totals: Dict[str, Dict[str, int]]
    events: VoucherEventLog

    def as_dict(self) -> Dict[str, object]:
        return {
            "totals": self.totals,
            "events": {
                "last_success_at": self.events.last_success_at.isoformat() if self.events.last_success_at else None,
                "last_success_operation": self.events.last_success_operation,
                "last_failure_at": self.events.last_failure_at.isoformat() if self.events.last_failure_at else None,
                "last_failure_operation": self.events.last_failure_operation,
                "last_failure_reason": self.events.last_failure_reason,
            },
        }


@dataclass
class VoucherObservabilityStore:
    _lock: Lock = field(default_factory=Lock)
    _totals: Dict[str, Counter] = field(default_factory=lambda: {operation: Counter() for operation in OPERATIONS})
    _events: VoucherEventLog = field(default_factory=VoucherEventLog)

    def record_success(self, operation: str) -> None:
        with self._lock:
            self._totals.setdefault(operation, Counter())["succeeded"] += 1
            self._events.last_success_at = _utcnow()
            self._events.last_success_operation = operation

    def record_failure(self, operation: str, outcome: str, reason: str | None = None) -> None:
        """Count a failed operation under its outcome bucket (error kind)."""

        with self._lock:
            self._totals.setdefault(operation, Counter())[outcome] += 1
            self._events.last_failure_at = _utcnow()
            self._events.last_failure_operation = operation
            self._events.last_failure_reason = reason

    def snapshot(self) -> VoucherObservabilitySnapshot:
        with self._lock:
            totals = {operation: dict(counter) for operation, counter in self._totals.items()}
            events = VoucherEventLog(**vars(self._events))
        return VoucherObservabilitySnapshot(totals=totals, events=events)

    def reset(self) -> None:
        with self._lock:
            for counter in self._totals.values():
                counter.clear()
            self._events = VoucherEventLog()


_VOUCHER_STORE = VoucherObservabilityStore()


def get_voucher_store() -> VoucherObservabilityStore:
    return _VOUCHER_STORE


__all__ = ["VoucherObservabilitySnapshot", "VoucherObservabilityStore", "get_voucher_store"]
