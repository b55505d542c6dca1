import json
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING, List
from datetime import datetime

from sqlalchemy import DateTime

from storefront.models.category import ProductCategoryLink
from storefront.utils.clock import utcnow

if TYPE_CHECKING:
    from .category import Category
    from .review import Review


class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)
    description: str = ""

    price: float
    compare_at_price: Optional[float] = None
    sku: Optional[str] = None
    inventory: int = Field(default=0, ge=0)

    # SEO
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    is_visible: bool = True
    is_featured: bool = False

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    images: List["ProductImage"] = Relationship(
        back_populates="product",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "ProductImage.sort_order",
        },
    )
    variants: List["ProductVariant"] = Relationship(
        back_populates="product",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    attributes: List["ProductAttribute"] = Relationship(
        back_populates="product",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "ProductAttribute.id",
        },
    )
    reviews: List["Review"] = Relationship(
        back_populates="product",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    categories: List["Category"] = Relationship(
        back_populates="products", link_model=ProductCategoryLink
    )

    @property
    def default_image(self) -> Optional[str]:
        for image in self.images:
            if image.is_default:
                return image.url
        return None


class ProductImage(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="product.id", ondelete="CASCADE")
    url: str
    alt: Optional[str] = None
    is_default: bool = False
    sort_order: int = 0

    product: Optional[Product] = Relationship(back_populates="images")


class ProductVariant(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="product.id", ondelete="CASCADE")
    name: str
    sku: Optional[str] = None
    price: Optional[float] = None
    inventory: int = Field(default=0, ge=0)
    attributes: Optional[str] = None  # JSON object as text

    product: Optional[Product] = Relationship(back_populates="variants")

    @property
    def attribute_map(self) -> dict:
        return json.loads(self.attributes) if self.attributes else {}


class ProductAttribute(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="product.id", ondelete="CASCADE")
    name: str
    value: str

    product: Optional[Product] = Relationship(back_populates="attributes")
