from typing import List, Optional

from storefront.schemas.base import CamelModel


class CartAddRequest(CamelModel):
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    quantity: Optional[int] = None


class CartUpdateRequest(CamelModel):
    quantity: Optional[int] = None


class CartProductView(CamelModel):
    id: int
    name: str
    slug: str
    price: float
    image: Optional[str] = None


class CartLineView(CamelModel):
    id: int
    quantity: int
    variant_id: Optional[int] = None
    product: CartProductView
    subtotal: float


class CartView(CamelModel):
    id: int
    items: List[CartLineView]
    total_items: int
    subtotal: float


class CartItemOut(CamelModel):
    id: int
    cart_id: int
    product_id: int
    variant_id: Optional[int] = None
    quantity: int


class CartItemResponse(CamelModel):
    message: str
    item: CartItemOut


class MessageResponse(CamelModel):
    message: str
