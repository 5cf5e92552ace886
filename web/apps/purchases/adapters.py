"""In-process stub adapters for the purchases domain ports.

These stubs implement ``PurchaseLedgerPort`` and ``CommandSessionFactory``
without a database or network. They are intended for unit tests and local
development where deterministic behavior is useful and a game server is not
available.
"""

import threading
from contextlib import nullcontext
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .domain import PurchaseRecord, PurchaseStatus, TransientRemoteError
from .repository import check_transition


class InMemoryPurchaseLedger:
    """Thread-safe ``PurchaseLedgerPort`` keeping records in a list."""

    def __init__(self):
        self._lock = threading.Lock()
        self._next_id = 1
        self.records: List[PurchaseRecord] = []

    def exists(self, order_id: str) -> bool:
        with self._lock:
            return any(r.order_id == str(order_id) for r in self.records)

    def insert(self, record: PurchaseRecord) -> PurchaseRecord:
        now = datetime.now(timezone.utc)
        with self._lock:
            record.order_id = str(record.order_id)
            record.id = self._next_id
            self._next_id += 1
            record.status = PurchaseStatus.PENDING
            record.created_at = record.updated_at = now
            self.records.append(record)
        return record

    def set_status(
        self,
        order_id: str,
        identity: str,
        entitlement: str,
        status: PurchaseStatus,
        error_message: Optional[str] = None,
    ) -> int:
        check_transition(status, error_message)
        now = datetime.now(timezone.utc)
        updated = 0
        with self._lock:
            for r in self.records:
                if (r.order_id, r.identity, r.entitlement) != (str(order_id), identity, entitlement):
                    continue
                if r.status is not PurchaseStatus.PENDING:
                    continue
                r.status = PurchaseStatus(status)
                r.error_message = error_message
                r.updated_at = now
                updated += 1
        return updated

    def atomic(self):
        return nullcontext()

    def recent(self, limit: int = 100) -> List[PurchaseRecord]:
        with self._lock:
            return sorted(self.records, key=lambda r: (r.created_at, r.id), reverse=True)[:limit]


class StubCommandSession:
    """Session handed out by ``StubCommandSessionFactory``."""

    def __init__(self, factory: "StubCommandSessionFactory"):
        self._factory = factory
        self.closed = False

    def send(self, command: str) -> str:
        return self._factory._handle(command)

    def close(self) -> None:
        self.closed = True
        with self._factory._lock:
            self._factory.closed += 1


class StubCommandSessionFactory:
    """Stub implementation of ``CommandSessionFactory``.

    Every command is recorded in ``commands``. ``failures`` is a sequence of
    booleans consumed one per attempt: True makes that attempt's send raise
    ``TransientRemoteError``. Once exhausted, sends succeed.

    Args:
        failures: Per-attempt failure script.
        connect_failures: Like ``failures`` but applied when opening.
    """

    def __init__(self, failures: Iterable[bool] = (), connect_failures: Iterable[bool] = ()):
        self._lock = threading.Lock()
        self._failures = list(failures)
        self._connect_failures = list(connect_failures)
        self.commands: List[str] = []
        self.opened = 0
        self.closed = 0

    def open(self) -> StubCommandSession:
        with self._lock:
            fail = self._connect_failures.pop(0) if self._connect_failures else False
            if fail:
                raise TransientRemoteError("connection refused (stub)")
            self.opened += 1
        return StubCommandSession(self)

    def _handle(self, command: str) -> str:
        with self._lock:
            self.commands.append(command)
            attempt = len(self.commands)
            fail = self._failures.pop(0) if self._failures else False
        if fail:
            raise TransientRemoteError(f"command failed (stub attempt {attempt})")
        return ""
