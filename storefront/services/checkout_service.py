"""Checkout: turn the signed-in user's cart into a persisted order.

Steps, in order: validate input, load cart, compute totals, apply promo,
resolve address, allocate order number, simulate payment, persist order,
decrement inventory, clear cart. Everything after input validation shares a
single transaction which is committed once at the end and rolled back on any
failure, so a rejected checkout leaves orders, stock, promo usage and the cart
exactly as they were.
"""
import json
import logging
from dataclasses import dataclass
from typing import List, Optional

from fastapi import HTTPException
from sqlmodel import Session

from storefront.config import settings
from storefront.constants.order_status import OrderStatus
from storefront.errors import (
    InsufficientInventoryError,
    PromoRejectedError,
    ValidationFailedError,
)
from storefront.models.address import Address
from storefront.models.cart import Cart, CartItem
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.user import User
from storefront.schemas.checkout_schemas import CheckoutRequest, ShippingAddressIn
from storefront.services.cart_service import UserOwned, find_cart
from storefront.services.inventory_service import decrement_inventory
from storefront.services.order_number import allocate_order_number
from storefront.services.payment_service import SUPPORTED_METHODS, payment_gateway
from storefront.services.promo_service import (
    check_promo_code,
    compute_discount,
    consume_promo_code,
    find_promo_code,
)

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("street", "city", "state", "postal_code", "country")
CARD_FIELDS = ("number", "name", "expiry", "cvc")


@dataclass
class OrderTotals:
    subtotal: float
    shipping: float
    tax: float
    discount: float
    total: float


def compute_order_totals(
    subtotal: float,
    discount: float = 0.0,
    shipping_rate: Optional[float] = None,
    tax_rate: Optional[float] = None,
) -> OrderTotals:
    """Round every component to cents first, then derive the total from the rounded parts."""
    shipping_rate = settings.shipping_rate if shipping_rate is None else shipping_rate
    tax_rate = settings.tax_rate if tax_rate is None else tax_rate

    rounded_subtotal = round(subtotal, 2)
    rounded_shipping = round(shipping_rate, 2)
    rounded_tax = round(subtotal * tax_rate, 2)
    rounded_discount = round(discount, 2)

    total = round(rounded_subtotal + rounded_shipping + rounded_tax - rounded_discount, 2)

    return OrderTotals(
        subtotal=rounded_subtotal,
        shipping=rounded_shipping,
        tax=rounded_tax,
        discount=rounded_discount,
        total=total,
    )


def validate_checkout_input(request: CheckoutRequest):
    if not request.shipping_address or not request.payment_method:
        raise ValidationFailedError("Shipping address and payment method are required")

    address = request.shipping_address
    if address.id is None and not all(
        (getattr(address, field) or "").strip() for field in ADDRESS_FIELDS
    ):
        raise ValidationFailedError("Please fill in all shipping address fields")

    if request.payment_method not in SUPPORTED_METHODS:
        raise ValidationFailedError("Unsupported payment method")

    if request.payment_method == "credit_card":
        details = request.payment_details
        if details is None or not all(
            (getattr(details, field) or "").strip() for field in CARD_FIELDS
        ):
            raise ValidationFailedError("Please fill in all payment details")


def _load_cart(session: Session, user_id: int) -> Cart:
    cart = find_cart(session, UserOwned(user_id))
    if not cart or not cart.items:
        raise ValidationFailedError("Cart is empty")

    for item in cart.items:
        if item.product.inventory < item.quantity:
            raise InsufficientInventoryError("Not enough inventory available")
        if item.variant is not None and item.variant.inventory < item.quantity:
            raise InsufficientInventoryError("Not enough variant inventory available")

    return cart


def _cart_subtotal(items: List[CartItem]) -> float:
    return sum(float(item.product.price) * item.quantity for item in items)


def _apply_promo(session: Session, code: Optional[str], subtotal: float):
    """Return ``(promo, discount)``. A code that does not apply is ignored, not an error."""
    if not code or not code.strip():
        return None, 0.0

    promo = find_promo_code(session, code)
    if promo is None:
        logger.info(f"Ignoring unknown promo code {code!r} at checkout")
        return None, 0.0

    try:
        check_promo_code(promo, subtotal)
    except PromoRejectedError as e:
        logger.info(f"Ignoring promo code {promo.code} at checkout: {e.reason.value}")
        return None, 0.0

    if not consume_promo_code(session, promo):
        logger.info(f"Promo code {promo.code} hit its usage limit during checkout")
        return None, 0.0

    return promo, compute_discount(promo, subtotal)


def _resolve_address(session: Session, user_id: int, data: ShippingAddressIn) -> Address:
    if data.id is not None:
        address = session.get(Address, data.id)
        if not address or address.user_id != user_id:
            raise ValidationFailedError("Invalid address")
        return address

    address = Address(
        user_id=user_id,
        street=data.street.strip(),
        city=data.city.strip(),
        state=data.state.strip(),
        postal_code=data.postal_code.strip(),
        country=data.country.strip(),
        is_default=data.is_default,
    )
    session.add(address)
    session.flush()
    return address


def _snapshot(item: CartItem) -> OrderItem:
    attributes = None
    if item.variant_id:
        attributes = json.dumps({
            "variantId": item.variant_id,
            "variant": item.variant.name if item.variant else None,
        })

    return OrderItem(
        product_id=item.product.id,
        name=item.product.name,
        sku=item.product.sku,
        price=item.product.price,
        quantity=item.quantity,
        attributes=attributes,
    )


def place_order(session: Session, user: User, request: CheckoutRequest) -> Order:
    validate_checkout_input(request)

    try:
        cart = _load_cart(session, user.id)
        items = list(cart.items)

        subtotal = _cart_subtotal(items)
        promo, discount = _apply_promo(session, request.promo_code, subtotal)
        totals = compute_order_totals(subtotal, discount)

        address = _resolve_address(session, user.id, request.shipping_address)
        number = allocate_order_number(session)
        payment_id = payment_gateway.charge(totals.total, request.payment_method)

        order = Order(
            number=number,
            user_id=user.id,
            address_id=address.id,
            status=OrderStatus.PENDING.value,
            subtotal=totals.subtotal,
            shipping=totals.shipping,
            tax=totals.tax,
            discount=totals.discount,
            total=totals.total,
            promo_code_id=promo.id if promo else None,
            payment_method=request.payment_method,
            payment_id=payment_id,
            items=[_snapshot(item) for item in items],
        )
        session.add(order)
        session.flush()

        for item in items:
            decrement_inventory(session, item.product_id, item.quantity, item.variant_id)

        for item in items:
            session.delete(item)

        session.commit()

    except HTTPException as e:
        logger.info(f"Checkout rejected for user {user.id}: {e.detail}")
        session.rollback()
        raise

    except Exception as e:
        logger.error(f"Checkout failed for user {user.id}: {e}")
        session.rollback()
        raise

    session.refresh(order)
    logger.info(f"Order {order.number} placed by user {user.id}, total {order.total:.2f}")
    return order

