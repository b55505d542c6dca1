from datetime import datetime
from typing import Optional

from storefront.schemas.base import CamelModel


class ShippingAddressIn(CamelModel):
    # either an id of a saved address, or the full address
    id: Optional[int] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    is_default: bool = False


class PaymentDetails(CamelModel):
    number: Optional[str] = None
    name: Optional[str] = None
    expiry: Optional[str] = None
    cvc: Optional[str] = None


class CheckoutRequest(CamelModel):
    shipping_address: Optional[ShippingAddressIn] = None
    payment_method: Optional[str] = None
    payment_details: Optional[PaymentDetails] = None
    promo_code: Optional[str] = None


class PlacedOrder(CamelModel):
    id: int
    number: str
    total: float
    status: str
    created_at: datetime


class CheckoutResponse(CamelModel):
    success: bool = True
    order: PlacedOrder
