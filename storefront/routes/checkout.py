from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.database import get_session
from storefront.errors import UnauthorizedError
from storefront.models.user import User
from storefront.schemas.checkout_schemas import CheckoutRequest, CheckoutResponse, PlacedOrder
from storefront.services.checkout_service import place_order
from storefront.utils.token import get_optional_user

router = APIRouter()


@router.post("", response_model=CheckoutResponse)
def checkout(
    data: CheckoutRequest,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    if current_user is None:
        raise UnauthorizedError("You must be logged in to checkout")

    order = place_order(session, current_user, data)

    return CheckoutResponse(
        success=True,
        order=PlacedOrder(
            id=order.id,
            number=order.number,
            total=order.total,
            status=order.status,
            created_at=order.created_at,
        ),
    )
