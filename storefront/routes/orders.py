from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.errors import NotFoundError
from storefront.models.order import Order
from storefront.models.user import User
from storefront.schemas.order_schemas import OrderOut, OrderPage
from storefront.utils.pagination import paginate
from storefront.utils.token import get_current_user

router = APIRouter()


@router.get("", response_model=OrderPage)
def my_orders(
    page: int = 1,
    limit: int = 10,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = (
        select(Order)
        .where(Order.user_id == current_user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    data = paginate(session=session, query=query, page=page, limit=limit)
    data["results"] = [OrderOut.model_validate(o) for o in data["results"]]
    return data


@router.get("/{number}", response_model=OrderOut)
def order_detail(
    number: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = session.exec(select(Order).where(Order.number == number)).first()

    if not order or order.user_id != current_user.id:
        raise NotFoundError("Order not found")

    return OrderOut.model_validate(order)
