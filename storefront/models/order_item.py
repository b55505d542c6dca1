from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from storefront.models.order import Order


class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id")
    product_id: Optional[int] = Field(default=None, foreign_key="product.id", ondelete="SET NULL")

    # snapshot taken at checkout, independent of later product edits
    name: str
    sku: Optional[str] = None
    price: float
    quantity: int
    attributes: Optional[str] = None

    order: Optional["Order"] = Relationship(back_populates="items")
