"""Domain models, ports and errors for rank purchases.

This module contains the dataclass used as DTO for a purchase record, the
status enumeration, protocol definitions (ports) for the ledger, the remote
command channel and the task dispatcher, plus the validation rules shared by
the order processor and the provisioner.
"""

import re
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Protocol

IDENTITY_RE = re.compile(r"[A-Za-z0-9_]{3,16}")
ENTITLEMENT_RE = re.compile(r"\S+")
DEFAULT_GRANT_COMMAND = "lp user {identity} parent add {entitlement}"


# ---- Errors ----
class AuthError(ValueError):
    """Inbound notification failed signature verification."""


class ValidationError(ValueError):
    """A line item or record carries data that can never be provisioned."""


class TransientRemoteError(RuntimeError):
    """Connecting to or talking with the remote command endpoint failed."""


# ---- Enums ----
class PurchaseStatus(str, Enum):
    """Lifecycle of a purchase record.

    Records start as PENDING and move exactly once to one of the terminal
    states."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not PurchaseStatus.PENDING


# ---- Entities / DTOs ----
@dataclass
class PurchaseRecord:
    """One (order, identity, entitlement) unit of provisioning work.

    Attributes:
        order_id: External order identifier, stored as a string.
        identity: Player nick targeted by the grant.
        entitlement: Group token resolved from product metadata.
        status: Current PurchaseStatus.
        error_message: Last failure description, only set when FAILED.
        id: Persistent identifier, or None if not yet saved.
        created_at: Insert timestamp assigned by the ledger.
        updated_at: Timestamp of the last status mutation.
    """

    order_id: str
    identity: str
    entitlement: str
    status: PurchaseStatus = PurchaseStatus.PENDING
    error_message: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def validate_identity(identity: str) -> str:
    """Return ``identity`` unchanged when it is a well-formed player nick.

    Raises:
        ValidationError: If the nick is not 3-16 characters of letters,
            digits or underscores.
    """
    if not IDENTITY_RE.fullmatch(identity or ""):
        raise ValidationError(
            f"Invalid player nick {identity!r}: expected 3-16 characters of A-Z, a-z, 0-9 or _"
        )
    return identity


def validate_entitlement(entitlement: str) -> str:
    """Return ``entitlement`` unchanged when it is a single non-blank token.

    Raises:
        ValidationError: If the token is empty or contains whitespace, which
            would split the remote command line.
    """
    if not ENTITLEMENT_RE.fullmatch(entitlement or ""):
        raise ValidationError(f"Invalid rank group {entitlement!r}: expected a single token")
    return entitlement


def build_grant_command(identity: str, entitlement: str, template: str = DEFAULT_GRANT_COMMAND) -> str:
    """Render the single-line administrative command granting ``entitlement``."""
    return template.format(identity=identity, entitlement=entitlement)


# ---- Ports (DIP) ----
class PurchaseLedgerPort(Protocol):
    """Port describing the persistent purchase ledger."""

    def exists(self, order_id: str) -> bool:
        """Return True when any record was stored for ``order_id``."""
        raise NotImplementedError()

    def insert(self, record: PurchaseRecord) -> PurchaseRecord:
        """Persist a new pending record and return it with id/timestamps set."""
        raise NotImplementedError()

    def set_status(
        self,
        order_id: str,
        identity: str,
        entitlement: str,
        status: PurchaseStatus,
        error_message: Optional[str] = None,
    ) -> int:
        """Move pending records for the key to a terminal status.

        Returns:
            int: Number of records transitioned. Records already terminal are
            left untouched.
        """
        raise NotImplementedError()

    def atomic(self) -> AbstractContextManager:
        """Return a context manager grouping ledger writes in one unit of work."""
        raise NotImplementedError()


class CommandSession(Protocol):
    """An open, authenticated remote command session."""

    def send(self, command: str) -> str:
        """Send one command line and return the server's reply.

        Raises:
            TransientRemoteError: When the command cannot be delivered.
        """
        raise NotImplementedError()

    def close(self) -> None:
        raise NotImplementedError()


class CommandSessionFactory(Protocol):
    """Opens short-lived command sessions against the game server."""

    def open(self) -> CommandSession:
        """Connect and authenticate a new session.

        Raises:
            TransientRemoteError: When connecting or logging in fails.
        """
        raise NotImplementedError()


class Dispatcher(Protocol):
    """Schedules detached units of work."""

    def submit(self, task: Callable[[], object], *, name: str) -> None:
        """Schedule ``task`` without waiting for it.

        Implementations must never let the task's failure propagate to the
        caller.
        """
        raise NotImplementedError()
