"""Cart manager: cart lookup by owner, guest-cart merge, line mutations and totals.

A cart is owned either by a signed-in user or by an anonymous session token.
Totals are never stored; ``compute_cart_view`` recomputes them from live
product prices on every read.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from sqlmodel import Session, select

from storefront.errors import (
    InsufficientInventoryError,
    InvalidIdentityError,
    NotFoundError,
    ValidationFailedError,
)
from storefront.models.cart import Cart, CartItem
from storefront.models.product import Product, ProductVariant
from storefront.schemas.cart_schemas import CartLineView, CartProductView, CartView
from storefront.utils.clock import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserOwned:
    user_id: int


@dataclass(frozen=True)
class SessionOwned:
    token: str


CartOwner = Union[UserOwned, SessionOwned]


def resolve_owner(user_id: Optional[int] = None, session_id: Optional[str] = None) -> CartOwner:
    """Pick the identity that owns the cart; a signed-in user wins over a session."""
    if user_id:
        return UserOwned(user_id)
    if session_id:
        return SessionOwned(session_id)
    raise InvalidIdentityError("Either user_id or session_id must be provided")


def find_cart(session: Session, owner: CartOwner) -> Optional[Cart]:
    if isinstance(owner, UserOwned):
        query = select(Cart).where(Cart.user_id == owner.user_id)
    else:
        query = select(Cart).where(Cart.session_id == owner.token)
    return session.exec(query).first()


def get_or_create_cart(
    session: Session,
    user_id: Optional[int] = None,
    session_id: Optional[str] = None,
) -> Cart:
    owner = resolve_owner(user_id, session_id)
    return _get_or_create_for_owner(session, owner)


def _get_or_create_for_owner(session: Session, owner: CartOwner) -> Cart:
    cart = find_cart(session, owner)
    if cart:
        return cart

    if isinstance(owner, UserOwned):
        cart = Cart(user_id=owner.user_id)
    else:
        cart = Cart(session_id=owner.token)

    session.add(cart)
    session.commit()
    session.refresh(cart)
    logger.info(f"Created cart {cart.id} for {owner}")
    return cart


def _find_line(cart: Cart, product_id: int, variant_id: Optional[int]) -> Optional[CartItem]:
    for item in cart.items:
        if item.product_id == product_id and item.variant_id == variant_id:
            return item
    return None


def merge_guest_cart(session: Session, user_id: int, session_id: str) -> Cart:
    """Fold the anonymous session cart into the user's cart after sign-in.

    Lines sharing ``(product_id, variant_id)`` have their quantities summed,
    the rest move over unchanged, and the session cart is deleted. With no
    session cart (or an empty one) the user cart is returned untouched, so
    calling this again after a merge is a no-op.
    """
    user_cart = find_cart(session, UserOwned(user_id))
    session_cart = find_cart(session, SessionOwned(session_id))

    if not session_cart or not session_cart.items:
        return user_cart or _get_or_create_for_owner(session, UserOwned(user_id))

    if user_cart is None:
        # hand the whole session cart over to the user
        session_cart.user_id = user_id
        session_cart.session_id = None
        session_cart.updated_at = utcnow()
        session.add(session_cart)
        session.commit()
        session.refresh(session_cart)
        logger.info(f"Session cart {session_cart.id} adopted by user {user_id}")
        return session_cart

    moved = summed = 0
    for item in list(session_cart.items):
        existing = _find_line(user_cart, item.product_id, item.variant_id)
        if existing:
            existing.quantity += item.quantity
            session.add(existing)
            session_cart.items.remove(item)  # orphaned, deleted on flush
            summed += 1
        else:
            user_cart.items.append(item)
            moved += 1

    session.flush()
    session.delete(session_cart)

    user_cart.updated_at = utcnow()
    session.add(user_cart)
    session.commit()
    session.refresh(user_cart)

    logger.info(
        f"Merged session cart into cart {user_cart.id} for user {user_id}: "
        f"{summed} summed, {moved} moved"
    )
    return user_cart


def compute_cart_view(cart: Cart) -> CartView:
    """Line subtotals and cart totals from current product prices. Reads only."""
    lines = []
    total_items = 0
    subtotal = 0.0

    for item in cart.items:
        product = item.product
        line_subtotal = float(product.price) * item.quantity

        lines.append(
            CartLineView(
                id=item.id,
                quantity=item.quantity,
                variant_id=item.variant_id,
                product=CartProductView(
                    id=product.id,
                    name=product.name,
                    slug=product.slug,
                    price=product.price,
                    image=product.default_image,
                ),
                subtotal=line_subtotal,
            )
        )
        total_items += item.quantity
        subtotal += line_subtotal

    return CartView(id=cart.id, items=lines, total_items=total_items, subtotal=subtotal)


def _check_quantity(quantity: Optional[int]) -> int:
    if quantity is None or quantity < 1:
        raise ValidationFailedError("Quantity must be at least 1")
    return quantity


def _check_stock(product: Product, variant: Optional[ProductVariant], quantity: int):
    if product.inventory < quantity:
        raise InsufficientInventoryError("Not enough inventory available")
    if variant is not None and variant.inventory < quantity:
        raise InsufficientInventoryError("Not enough variant inventory available")


def add_item(
    session: Session,
    owner: CartOwner,
    product_id: int,
    variant_id: Optional[int] = None,
    quantity: Optional[int] = 1,
) -> Tuple[CartItem, bool]:
    """Add a line or grow an existing one. Returns ``(item, created)``."""
    quantity = _check_quantity(1 if quantity is None else quantity)

    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found")

    if not product.is_visible:
        raise ValidationFailedError("Product is not available")

    variant = None
    if variant_id:
        variant = session.exec(
            select(ProductVariant).where(
                ProductVariant.id == variant_id,
                ProductVariant.product_id == product_id,
            )
        ).first()
        if not variant:
            raise NotFoundError("Variant not found")

    # validate against the request alone before touching any cart
    _check_stock(product, variant, quantity)

    cart = _get_or_create_for_owner(session, owner)
    existing = _find_line(cart, product_id, variant_id or None)

    if existing:
        _check_stock(product, variant, existing.quantity + quantity)
        existing.quantity += quantity
        item, created = existing, False
    else:
        item = CartItem(
            cart_id=cart.id,
            product_id=product_id,
            variant_id=variant_id or None,
            quantity=quantity,
        )
        created = True

    cart.updated_at = utcnow()
    session.add(item)
    session.add(cart)
    session.commit()
    session.refresh(item)
    return item, created


def _owned_item(session: Session, owner: CartOwner, item_id: int) -> CartItem:
    item = session.get(CartItem, item_id)
    if item is None:
        raise NotFoundError("Cart item not found or access denied")

    cart = item.cart
    if isinstance(owner, UserOwned):
        owned = cart.user_id == owner.user_id
    else:
        owned = cart.session_id == owner.token

    if not owned:
        raise NotFoundError("Cart item not found or access denied")
    return item


def update_item(session: Session, owner: CartOwner, item_id: int, quantity: Optional[int]) -> CartItem:
    item = _owned_item(session, owner, item_id)
    quantity = _check_quantity(quantity)

    _check_stock(item.product, item.variant, quantity)

    item.quantity = quantity
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def remove_item(session: Session, owner: CartOwner, item_id: int):
    item = _owned_item(session, owner, item_id)
    session.delete(item)
    session.commit()


def clear_cart(session: Session, owner: CartOwner) -> bool:
    """Empty the owner's cart. Returns False when there was no cart."""
    cart = find_cart(session, owner)
    if cart is None:
        return False

    for item in list(cart.items):
        session.delete(item)

    session.commit()
    return True
