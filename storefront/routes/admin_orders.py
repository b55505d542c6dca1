import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from storefront.constants.order_status import OrderStatus, can_transition
from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.errors import NotFoundError, ValidationFailedError
from storefront.models.order import Order
from storefront.models.user import User
from storefront.schemas.order_schemas import OrderOut, OrderPage, OrderStatusUpdate
from storefront.utils.clock import utcnow
from storefront.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=OrderPage)
def list_orders(
    status: Optional[OrderStatus] = None,
    page: int = 1,
    limit: int = 10,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    query = select(Order)

    if status:
        query = query.where(Order.status == status.value)

    query = query.order_by(Order.created_at.desc(), Order.id.desc())

    data = paginate(session=session, query=query, page=page, limit=limit)
    data["results"] = [OrderOut.model_validate(o) for o in data["results"]]
    return data


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")

    if not can_transition(order.status, data.status.value):
        raise ValidationFailedError(
            f"Cannot change status from {order.status} to {data.status.value}"
        )

    old_status = order.status
    order.status = data.status.value
    order.updated_at = utcnow()
    session.add(order)
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.number}: {old_status} -> {order.status} by admin {admin.id}")
    return OrderOut.model_validate(order)
