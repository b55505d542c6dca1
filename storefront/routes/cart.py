from uuid import uuid4

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from storefront.config import settings
from storefront.database import get_session
from storefront.dependencies.identity import CallerIdentity, get_identity
from storefront.errors import UnauthorizedError, ValidationFailedError
from storefront.schemas.cart_schemas import (
    CartAddRequest,
    CartItemOut,
    CartItemResponse,
    CartUpdateRequest,
    CartView,
    MessageResponse,
)
from storefront.services.cart_service import (
    add_item,
    clear_cart,
    compute_cart_view,
    get_or_create_cart,
    merge_guest_cart,
    remove_item,
    resolve_owner,
    update_item,
)

router = APIRouter()


def _set_session_cookie(response: Response, session_id: str):
    response.set_cookie(
        settings.session_cookie_name,
        session_id,
        httponly=True,
        max_age=settings.session_cookie_max_age,
        path="/",
    )


# View Cart

@router.get("", response_model=CartView)
def get_cart(
    response: Response,
    identity: CallerIdentity = Depends(get_identity),
    session: Session = Depends(get_session),
):
    if identity.is_anonymous:
        raise ValidationFailedError("No user or session identified")

    if identity.user and identity.session_id:
        # first request after sign-in: fold the guest cart in and drop the cookie
        cart = merge_guest_cart(session, identity.user_id, identity.session_id)
        response.delete_cookie(settings.session_cookie_name, path="/")
    else:
        cart = get_or_create_cart(session, identity.user_id, identity.session_id)

    return compute_cart_view(cart)


# Add to Cart

@router.post("", response_model=CartItemResponse)
def add_to_cart(
    data: CartAddRequest,
    response: Response,
    identity: CallerIdentity = Depends(get_identity),
    session: Session = Depends(get_session),
):
    if not data.product_id:
        raise ValidationFailedError("Product ID is required")

    session_id = identity.session_id
    if identity.user is None and not session_id:
        session_id = uuid4().hex

    owner = resolve_owner(identity.user_id, session_id)
    item, created = add_item(
        session,
        owner,
        product_id=data.product_id,
        variant_id=data.variant_id,
        quantity=data.quantity,
    )

    if identity.user is None:
        _set_session_cookie(response, session_id)

    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return CartItemResponse(
        message="Item added to cart" if created else "Item quantity updated in cart",
        item=CartItemOut.model_validate(item),
    )


# Update Cart

@router.put("/items/{item_id}", response_model=CartItemResponse)
def update_cart_item(
    item_id: int,
    data: CartUpdateRequest,
    identity: CallerIdentity = Depends(get_identity),
    session: Session = Depends(get_session),
):
    if identity.is_anonymous:
        raise UnauthorizedError("No user or session identified")

    owner = resolve_owner(identity.user_id, identity.session_id)
    item = update_item(session, owner, item_id, data.quantity)

    return CartItemResponse(
        message="Cart item updated successfully",
        item=CartItemOut.model_validate(item),
    )


# Remove Cart Item

@router.delete("/items/{item_id}", response_model=MessageResponse)
def remove_cart_item(
    item_id: int,
    identity: CallerIdentity = Depends(get_identity),
    session: Session = Depends(get_session),
):
    if identity.is_anonymous:
        raise UnauthorizedError("No user or session identified")

    owner = resolve_owner(identity.user_id, identity.session_id)
    remove_item(session, owner, item_id)
    return MessageResponse(message="Cart item removed successfully")


# Clear Cart

@router.delete("", response_model=MessageResponse)
def clear_cart_endpoint(
    identity: CallerIdentity = Depends(get_identity),
    session: Session = Depends(get_session),
):
    if identity.is_anonymous:
        raise ValidationFailedError("No user or session identified")

    owner = resolve_owner(identity.user_id, identity.session_id)
    if not clear_cart(session, owner):
        return MessageResponse(message="No cart found to clear")

    return MessageResponse(message="Cart cleared successfully")
