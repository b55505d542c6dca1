from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING, List
from datetime import datetime

from sqlalchemy import DateTime

from storefront.utils.clock import utcnow

if TYPE_CHECKING:
    from .product import Product


class ProductCategoryLink(SQLModel, table=True):
    product_id: Optional[int] = Field(
        default=None, foreign_key="product.id", primary_key=True, ondelete="CASCADE"
    )
    category_id: Optional[int] = Field(
        default=None, foreign_key="category.id", primary_key=True, ondelete="CASCADE"
    )


class Category(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    slug: str = Field(index=True, unique=True)
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    products: List["Product"] = Relationship(
        back_populates="categories", link_model=ProductCategoryLink
    )
