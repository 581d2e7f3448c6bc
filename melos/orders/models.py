"""
Order models.

Field names are snake_case in Python and camelCase on the wire and on
disk (userId, customerInfo, totalAmount, createdAt...), matching what the
storefront front end sends and reads.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..auth.models import utcnow


class OrderStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        allow_inf_nan=False,
    )


class OrderItem(_CamelModel):
    """One cart line. size is None for items sold in a single size (drinks, extras)."""

    name: str = Field(..., min_length=1)
    size: Optional[str] = None
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class CustomerInfo(_CamelModel):
    payment_method: str = Field(..., min_length=1)
    shipping_address: str = Field(..., min_length=1)
    shipping_neighborhood: Optional[str] = None
    contact_phone: str = Field(..., min_length=1)


class OrderRecord(_CamelModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    items: List[OrderItem] = Field(..., min_length=1)
    customer_info: CustomerInfo
    total_amount: float = Field(..., ge=0)
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_public(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
