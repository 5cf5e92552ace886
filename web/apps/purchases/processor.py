"""Order line processing: extract grants, record them, dispatch provisioning."""

import logging
from functools import partial
from typing import List, Optional, Tuple

from .domain import Dispatcher, PurchaseLedgerPort, PurchaseRecord
from .provisioner import RankProvisioner
from .schemas import LineItemIn, OrderPayload

logger = logging.getLogger(__name__)

DEFAULT_IDENTITY_PROPERTY = "Nick Minecraft"


class OrderLineProcessor:
    """Turns a paid order into pending purchase records.

    For each line item the player nick is read from the configured property
    and the rank group from the product's ``rank.luckperms_group`` metafield.
    Items missing either are skipped with a warning; the remaining items are
    still processed. Each stored record is handed to the dispatcher, which
    runs the provisioner detached from the request.
    """

    def __init__(
        self,
        ledger: PurchaseLedgerPort,
        provisioner: RankProvisioner,
        dispatcher: Dispatcher,
        identity_property: str = DEFAULT_IDENTITY_PROPERTY,
    ):
        self.ledger = ledger
        self.provisioner = provisioner
        self.dispatcher = dispatcher
        self.identity_property = identity_property

    def extract(self, order: OrderPayload, item: LineItemIn) -> Optional[Tuple[str, str]]:
        """Return ``(identity, entitlement)`` for ``item`` or None to skip it."""
        identity = item.property_value(self.identity_property)
        if not identity:
            logger.warning(
                "line item skipped: no player nick",
                extra={"order_id": str(order.id), "line_item_id": item.id},
            )
            return None

        entitlement = item.rank_group()
        if not entitlement:
            logger.warning(
                "line item skipped: product has no rank group",
                extra={"order_id": str(order.id), "line_item_id": item.id, "product_id": item.resolved_product_id()},
            )
            return None
        return identity, entitlement

    def process(self, order: OrderPayload) -> List[PurchaseRecord]:
        """Record and dispatch every provisionable line item of ``order``.

        Returns:
            list[PurchaseRecord]: The pending records that were stored.
        """
        records: List[PurchaseRecord] = []
        for item in order.line_items:
            grant = self.extract(order, item)
            if grant is None:
                continue
            identity, entitlement = grant
            record = self.ledger.insert(PurchaseRecord(order_id=str(order.id), identity=identity, entitlement=entitlement))
            self.dispatcher.submit(
                partial(self.provisioner.provision, record),
                name=f"provision-{record.order_id}-{record.identity}",
            )
            records.append(record)
        return records
