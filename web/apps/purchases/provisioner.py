"""Rank provisioning with fail-fast validation and bounded retries.

``RankProvisioner.provision`` drives one purchase record from PENDING to a
terminal state:

- Validation of the nick and rank token happens once, before any remote
  session is opened, because a malformed value can never succeed on retry.
- Each attempt opens its own command session, sends exactly one grant
  command and closes the session whatever the outcome.
- ``TransientRemoteError`` is retried up to ``max_attempts`` with exponential
  backoff (``backoff_base ** attempt`` seconds: 2, 4, ...). The last failure's
  message is stored on the record.
- Any other exception marks the record failed and is re-raised for the
  dispatcher's error boundary to log.
"""

import logging
import time
from typing import Callable

from django.conf import settings

from .domain import (
    DEFAULT_GRANT_COMMAND,
    CommandSessionFactory,
    PurchaseLedgerPort,
    PurchaseRecord,
    PurchaseStatus,
    TransientRemoteError,
    ValidationError,
    build_grant_command,
    validate_entitlement,
    validate_identity,
)

logger = logging.getLogger(__name__)


def _retry_policy():
    """Return retry configuration as (max_attempts, backoff_base_seconds)."""
    return (
        getattr(settings, "PROVISION_MAX_ATTEMPTS", 3),
        getattr(settings, "PROVISION_BACKOFF_BASE", 2.0),
    )


class RankProvisioner:
    """Applies one rank to one player through the remote command channel.

    Args:
        ledger: Ledger receiving the terminal status update.
        sessions: Factory for short-lived command sessions.
        sleep: Function used to wait between attempts; injectable for tests.
        max_attempts: Attempt cap, defaults to settings (3).
        backoff_base: Base of the exponential backoff, defaults to settings (2).
        command_template: ``str.format`` template with ``{identity}`` and
            ``{entitlement}`` placeholders.
    """

    def __init__(
        self,
        ledger: PurchaseLedgerPort,
        sessions: CommandSessionFactory,
        sleep: Callable[[float], None] = time.sleep,
        max_attempts: int | None = None,
        backoff_base: float | None = None,
        command_template: str | None = None,
    ):
        default_attempts, default_base = _retry_policy()
        self.ledger = ledger
        self.sessions = sessions
        self.sleep = sleep
        self.max_attempts = max_attempts or default_attempts
        self.backoff_base = default_base if backoff_base is None else backoff_base
        self.command_template = command_template or getattr(settings, "RCON_GRANT_COMMAND", DEFAULT_GRANT_COMMAND)

    def provision(self, record: PurchaseRecord) -> PurchaseStatus:
        """Grant ``record.entitlement`` to ``record.identity``.

        Returns:
            PurchaseStatus: COMPLETED or FAILED, also written to the ledger.

        Raises:
            Exception: Unexpected (non-transient) errors are re-raised after
                the record is marked FAILED.
        """
        try:
            validate_identity(record.identity)
            validate_entitlement(record.entitlement)
        except ValidationError as e:
            logger.warning(
                "purchase rejected before provisioning",
                extra={"order_id": record.order_id, "identity": record.identity, "reason": str(e)},
            )
            return self._finish(record, PurchaseStatus.FAILED, str(e))

        command = build_grant_command(record.identity, record.entitlement, self.command_template)
        try:
            return self._run_attempts(record, command)
        except Exception as e:
            self._finish(record, PurchaseStatus.FAILED, f"Unexpected error: {e}")
            raise

    def _run_attempts(self, record: PurchaseRecord, command: str) -> PurchaseStatus:
        attempt = 0
        while True:
            attempt += 1
            try:
                self._send_once(command)
            except TransientRemoteError as e:
                logger.warning(
                    "rank grant attempt failed",
                    extra={
                        "order_id": record.order_id,
                        "identity": record.identity,
                        "attempt": attempt,
                        "error": str(e),
                    },
                )
                if attempt >= self.max_attempts:
                    return self._finish(record, PurchaseStatus.FAILED, str(e))
                self.sleep(self.backoff_base ** attempt)  # exponential backoff
                continue

            logger.info(
                "rank granted",
                extra={
                    "order_id": record.order_id,
                    "identity": record.identity,
                    "entitlement": record.entitlement,
                    "attempt": attempt,
                },
            )
            return self._finish(record, PurchaseStatus.COMPLETED)

    def _send_once(self, command: str) -> str:
        session = self.sessions.open()
        try:
            return session.send(command)
        finally:
            session.close()

    def _finish(self, record: PurchaseRecord, status: PurchaseStatus, error: str | None = None) -> PurchaseStatus:
        updated = self.ledger.set_status(record.order_id, record.identity, record.entitlement, status, error)
        if not updated:
            logger.warning(
                "purchase already terminal, status not changed",
                extra={"order_id": record.order_id, "identity": record.identity, "status": status.value},
            )
        record.status = status
        record.error_message = error
        return status
