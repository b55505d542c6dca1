from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime

from sqlalchemy import DateTime

from storefront.constants.order_status import OrderStatus
from storefront.models.address import Address
from storefront.models.order_item import OrderItem
from storefront.utils.clock import utcnow


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    number: str = Field(index=True, unique=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    address_id: int = Field(foreign_key="address.id")

    subtotal: float
    shipping: float
    tax: float
    discount: float = 0.0
    total: float

    status: str = Field(default=OrderStatus.PENDING.value)

    promo_code_id: Optional[int] = Field(default=None, foreign_key="promocode.id")
    payment_method: str
    payment_id: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    address: Optional[Address] = Relationship()


class OrderNumberSequence(SQLModel, table=True):
    """Monotonic counter backing human-readable order numbers."""

    name: str = Field(primary_key=True)
    next_value: int
