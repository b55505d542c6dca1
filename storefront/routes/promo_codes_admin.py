import logging

from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.errors import ConflictError, NotFoundError
from storefront.models.promo_code import PromoCode
from storefront.models.user import User
from storefront.schemas.promo_schemas import (
    PromoCodeCreate,
    PromoCodeList,
    PromoCodeOut,
    PromoCodeUpdate,
)
from storefront.services.promo_service import find_promo_code, normalize_code
from storefront.utils.clock import as_utc, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=PromoCodeOut, status_code=status.HTTP_201_CREATED)
def create_promo_code(
    data: PromoCodeCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if find_promo_code(session, data.code):
        raise ConflictError("Promotion code already exists")

    promo = PromoCode(
        code=normalize_code(data.code),
        description=data.description,
        discount_type=data.discount_type,
        discount_amount=data.discount_amount,
        minimum_amount=data.minimum_amount,
        start_date=as_utc(data.start_date) or utcnow(),
        end_date=as_utc(data.end_date),
        usage_limit=data.usage_limit,
        is_active=data.is_active,
    )
    session.add(promo)
    session.commit()
    session.refresh(promo)

    logger.info(f"Promo code {promo.code} created by admin {admin.id}")
    return promo


@router.get("", response_model=PromoCodeList)
def list_promo_codes(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    promos = session.exec(select(PromoCode).order_by(PromoCode.created_at.desc())).all()
    return PromoCodeList(results=[PromoCodeOut.model_validate(p) for p in promos])


@router.patch("/{promo_id}", response_model=PromoCodeOut)
def update_promo_code(
    promo_id: int,
    data: PromoCodeUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    promo = session.get(PromoCode, promo_id)
    if not promo:
        raise NotFoundError("Promotion code not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        if field in ("start_date", "end_date"):
            value = as_utc(value)
        setattr(promo, field, value)

    session.add(promo)
    session.commit()
    session.refresh(promo)
    return promo
