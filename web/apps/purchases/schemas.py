"""Pydantic schemas for purchases.

This module exposes the lightweight schemas used to validate the inbound
paid-order notification and to render ledger rows in the admin listing.
Unknown fields sent by the storefront are ignored.
"""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PropertyIn(BaseModel):
    """A custom line item property captured at checkout (e.g. the nick)."""

    name: str
    value: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, v: Any) -> Optional[str]:
        """Coerce scalar property values to text; None stays None."""
        if v is None:
            return None
        return str(v)


class RankMetafieldIn(BaseModel):
    luckperms_group: Optional[str] = None


class MetafieldsIn(BaseModel):
    rank: Optional[RankMetafieldIn] = None


class ProductIn(BaseModel):
    id: Optional[Union[int, str]] = None
    metafields: Optional[MetafieldsIn] = None


class LineItemIn(BaseModel):
    """Input schema for a single order line item.

    Attributes:
        id: Line item identifier, used in log messages only.
        product_id: Storefront product id, used in log messages only.
        properties: Custom properties; one of them carries the player nick.
        product: Product data with the rank metafield.
    """

    id: Optional[Union[int, str]] = None
    product_id: Optional[Union[int, str]] = None
    properties: list[PropertyIn] = Field(default_factory=list)
    product: Optional[ProductIn] = None

    @field_validator("properties", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def property_value(self, name: str) -> Optional[str]:
        """Return the stripped value of the first property called ``name``."""
        for prop in self.properties:
            if prop.name == name:
                return (prop.value or "").strip() or None
        return None

    def rank_group(self) -> Optional[str]:
        """Return the rank group from ``product.metafields.rank``, if any."""
        rank = self.product and self.product.metafields and self.product.metafields.rank
        if not rank or not rank.luckperms_group:
            return None
        return rank.luckperms_group.strip() or None

    def resolved_product_id(self) -> Optional[Union[int, str]]:
        if self.product_id is not None:
            return self.product_id
        return self.product.id if self.product else None


class OrderPayload(BaseModel):
    """Schema of the paid-order notification body.

    Attributes:
        id: Storefront order id (opaque).
        line_items: Purchased line items.
    """

    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    line_items: list[LineItemIn] = Field(default_factory=list)


class PurchaseReadDTO(BaseModel):
    """Read model of a ledger row for the admin listing."""

    id: int
    order_id: str
    identity: str
    entitlement: str
    status: str
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime
