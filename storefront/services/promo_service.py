import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_, update
from sqlmodel import Session, select

from storefront.errors import PromoRejectedError, PromoRejection
from storefront.models.promo_code import DiscountType, PromoCode
from storefront.schemas.promo_schemas import PromoValidation
from storefront.utils.clock import as_utc, utcnow

logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    return code.strip().upper()


def find_promo_code(session: Session, code: str) -> Optional[PromoCode]:
    return session.exec(
        select(PromoCode).where(PromoCode.code == normalize_code(code))
    ).first()


def check_promo_code(promo: PromoCode, cart_total: float, now: Optional[datetime] = None):
    """Raise ``PromoRejectedError`` for the first rule the code breaks.

    Rules run in a fixed order so exactly one reason is reported: active flag,
    start date, end date, usage cap, minimum amount.
    """
    now = as_utc(now or utcnow())
    start_date = as_utc(promo.start_date)
    end_date = as_utc(promo.end_date)

    if not promo.is_active:
        raise PromoRejectedError(PromoRejection.INACTIVE)

    if start_date > now:
        raise PromoRejectedError(PromoRejection.NOT_YET_STARTED)

    if end_date and end_date < now:
        raise PromoRejectedError(PromoRejection.EXPIRED)

    if promo.usage_limit and promo.usage_count >= promo.usage_limit:
        raise PromoRejectedError(PromoRejection.USAGE_LIMIT_REACHED)

    if promo.minimum_amount and cart_total < promo.minimum_amount:
        raise PromoRejectedError(PromoRejection.BELOW_MINIMUM_AMOUNT)


def compute_discount(promo: PromoCode, cart_total: float) -> float:
    if promo.discount_type == DiscountType.PERCENTAGE:
        return cart_total * promo.discount_amount / 100

    # a fixed discount never takes the total below zero
    return min(promo.discount_amount, cart_total)


def validate_promo_code(
    session: Session,
    code: str,
    cart_total: float,
    now: Optional[datetime] = None,
) -> PromoValidation:
    """Check a code against a cart total. Never consumes usage."""
    promo = find_promo_code(session, code)
    if promo is None:
        raise PromoRejectedError(PromoRejection.NOT_FOUND)

    check_promo_code(promo, cart_total, now)

    return PromoValidation(
        valid=True,
        code=promo.code,
        discount_type=promo.discount_type,
        discount_amount=round(compute_discount(promo, cart_total), 2),
        original_amount=promo.discount_amount,
        description=promo.description,
    )


def consume_promo_code(session: Session, promo: PromoCode) -> bool:
    """Count one use of ``promo`` inside the caller's transaction.

    Returns False when the cap was reached in the meantime; the counter is
    then left untouched.
    """
    result = session.execute(
        update(PromoCode)
        .where(
            PromoCode.id == promo.id,
            or_(PromoCode.usage_limit.is_(None), PromoCode.usage_count < PromoCode.usage_limit),
        )
        .values(usage_count=PromoCode.usage_count + 1)
    )
    return result.rowcount == 1
