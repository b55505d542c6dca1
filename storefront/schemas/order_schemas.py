from datetime import datetime
from typing import List, Optional

from storefront.constants.order_status import OrderStatus
from storefront.schemas.base import CamelModel


class OrderItemOut(CamelModel):
    id: int
    product_id: Optional[int] = None
    name: str
    sku: Optional[str] = None
    price: float
    quantity: int
    attributes: Optional[str] = None


class AddressOut(CamelModel):
    id: int
    street: str
    city: str
    state: str
    postal_code: str
    country: str


class OrderOut(CamelModel):
    id: int
    number: str
    status: str
    subtotal: float
    shipping: float
    tax: float
    discount: float
    total: float
    payment_method: str
    payment_id: Optional[str] = None
    created_at: datetime
    items: List[OrderItemOut] = []
    address: Optional[AddressOut] = None


class OrderPage(CamelModel):
    page: int
    limit: int
    total_items: int
    total_pages: int
    results: List[OrderOut]


class OrderStatusUpdate(CamelModel):
    status: OrderStatus
