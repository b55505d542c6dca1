from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List
from datetime import datetime

from storefront.models.product import Product, ProductVariant
from storefront.utils.clock import utcnow


class Cart(SQLModel, table=True):
    __table_args__ = (
        # a cart belongs to a user or to an anonymous session, never both
        CheckConstraint(
            "(user_id IS NULL) <> (session_id IS NULL)",
            name="cart_single_owner",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", unique=True)
    session_id: Optional[str] = Field(default=None, unique=True, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    items: List["CartItem"] = Relationship(
        back_populates="cart",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "CartItem.id",
        },
    )


class CartItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    cart_id: int = Field(foreign_key="cart.id", ondelete="CASCADE")
    product_id: int = Field(foreign_key="product.id", ondelete="CASCADE")
    variant_id: Optional[int] = Field(default=None, foreign_key="productvariant.id")
    quantity: int = 1
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    cart: Optional[Cart] = Relationship(back_populates="items")
    product: Optional[Product] = Relationship()
    variant: Optional[ProductVariant] = Relationship()
