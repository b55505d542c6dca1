from sqlmodel import SQLModel, Field, Relationship
from typing import Optional
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime

from storefront.models.product import Product
from storefront.models.user import User
from storefront.utils.clock import utcnow


class Review(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="review_rating_range"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="product.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="user.id")
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None

    # hidden reviews stay stored but drop out of the product page
    is_visible: bool = True

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    product: Optional[Product] = Relationship(back_populates="reviews")
    user: Optional[User] = Relationship()
