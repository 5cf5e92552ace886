"""Repository layer for the purchase ledger.

This module contains the Django ORM implementation of ``PurchaseLedgerPort``.
It keeps a thin interface returning domain ``PurchaseRecord`` objects so the
ingress, processor and provisioner are not coupled to ORM details.
"""

from typing import List, Optional

from django.db import transaction
from django.utils import timezone

from .domain import PurchaseRecord, PurchaseStatus
from .models import PurchaseModel


def _to_record(obj: PurchaseModel) -> PurchaseRecord:
    return PurchaseRecord(
        order_id=obj.order_id,
        identity=obj.identity,
        entitlement=obj.entitlement,
        status=PurchaseStatus(obj.status),
        error_message=obj.error_message,
        id=obj.id,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


def check_transition(status: PurchaseStatus, error_message: Optional[str]) -> None:
    """Reject status updates that are not a pending -> terminal move.

    Raises:
        ValueError: ``INVALID_TRANSITION`` when ``status`` is not terminal,
            ``ERROR_MESSAGE_ONLY_WHEN_FAILED`` when a message accompanies a
            non-failed status.
    """
    if not PurchaseStatus(status).is_terminal:
        raise ValueError("INVALID_TRANSITION")
    if error_message is not None and status != PurchaseStatus.FAILED:
        raise ValueError("ERROR_MESSAGE_ONLY_WHEN_FAILED")


class PurchaseLedger:
    """Ledger that persists purchase records using Django ORM.

    Status updates are conditional on the row still being pending, so a
    concurrent or repeated provisioning run can never move a record out of a
    terminal state.
    """

    def exists(self, order_id: str) -> bool:
        return PurchaseModel.objects.filter(order_id=str(order_id)).exists()

    def insert(self, record: PurchaseRecord) -> PurchaseRecord:
        """Persist a new pending record.

        Args:
            record: Domain record; its ``id`` and timestamps are filled in
                from the stored row.

        Returns:
            PurchaseRecord: The same instance, now carrying persisted fields.
        """
        obj = PurchaseModel.objects.create(
            order_id=str(record.order_id),
            identity=record.identity,
            entitlement=record.entitlement,
            status=PurchaseStatus.PENDING.value,
        )
        record.id = obj.id
        record.status = PurchaseStatus.PENDING
        record.created_at = obj.created_at
        record.updated_at = obj.updated_at
        return record

    def set_status(
        self,
        order_id: str,
        identity: str,
        entitlement: str,
        status: PurchaseStatus,
        error_message: Optional[str] = None,
    ) -> int:
        """Transition pending rows matching the key to ``status``.

        Returns:
            int: Number of rows updated (0 when they were already terminal).

        Raises:
            ValueError: If the requested transition is not allowed.
        """
        check_transition(status, error_message)
        # queryset.update() bypasses auto_now, so updated_at is set explicitly
        return PurchaseModel.objects.filter(
            order_id=str(order_id),
            identity=identity,
            entitlement=entitlement,
            status=PurchaseStatus.PENDING.value,
        ).update(
            status=PurchaseStatus(status).value,
            error_message=error_message,
            updated_at=timezone.now(),
        )

    def atomic(self):
        return transaction.atomic()

    def recent(self, limit: int = 100) -> List[PurchaseRecord]:
        """Return up to ``limit`` records, newest first."""
        qs = PurchaseModel.objects.order_by("-created_at", "-id")[:limit]
        return [_to_record(o) for o in qs]
