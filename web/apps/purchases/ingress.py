"""Authentication and deduplication of paid-order notifications.

The storefront signs every notification with HMAC-SHA256 over the raw
request body using the shared webhook secret. The signature travels base64
encoded in the ``X-Shopify-Hmac-Sha256`` header, prefixed with ``sha256=``.
Verification compares bytes in constant time and happens before the body is
parsed, so an unauthenticated payload is never interpreted or persisted.

Orders are deduplicated on their id: once any purchase record exists for an
order, later deliveries are acknowledged as already processed without
touching the line items.
"""

import base64
import hashlib
import hmac
import logging
from typing import Optional

from .domain import AuthError, PurchaseLedgerPort
from .processor import OrderLineProcessor
from .schemas import OrderPayload

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Shopify-Hmac-Sha256"
SIGNATURE_PREFIX = "sha256="

SUCCESS = "success"
ALREADY_PROCESSED = "already_processed"


def compute_signature(secret: str, raw_body: bytes) -> str:
    """Return the expected header value for ``raw_body``."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return SIGNATURE_PREFIX + base64.b64encode(digest).decode("ascii")


def verify_signature(secret: str, raw_body: bytes, signature: Optional[str]) -> bool:
    if not signature:
        return False
    expected = compute_signature(secret, raw_body)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))


class WebhookIngress:
    """Entry point for paid-order notifications.

    Args:
        secret: Shared webhook secret.
        ledger: Purchase ledger used for the idempotency check.
        processor: Line processor receiving orders seen for the first time.
    """

    def __init__(self, secret: str, ledger: PurchaseLedgerPort, processor: OrderLineProcessor):
        self.secret = secret
        self.ledger = ledger
        self.processor = processor

    def authenticate(self, raw_body: bytes, signature: Optional[str]) -> None:
        """Raise ``AuthError`` unless ``signature`` matches ``raw_body``."""
        if not verify_signature(self.secret, raw_body, signature):
            raise AuthError("INVALID_SIGNATURE")

    def handle(self, raw_body: bytes, signature: Optional[str]) -> str:
        """Authenticate, parse and process one notification.

        Returns:
            str: ``"success"`` when the order was processed now,
            ``"already_processed"`` when it had been seen before.

        Raises:
            AuthError: If the signature is missing or does not match.
            pydantic.ValidationError: If the authenticated body is not a
                valid order payload.
        """
        self.authenticate(raw_body, signature)
        order = OrderPayload.model_validate_json(raw_body)
        order_id = str(order.id)

        with self.ledger.atomic():
            if self.ledger.exists(order_id):
                logger.info("order already processed", extra={"order_id": order_id})
                return ALREADY_PROCESSED
            records = self.processor.process(order)

        logger.info(
            "order processed",
            extra={"order_id": order_id, "line_items": len(order.line_items), "purchases": len(records)},
        )
        return SUCCESS
