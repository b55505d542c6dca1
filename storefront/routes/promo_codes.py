from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.database import get_session
from storefront.errors import ValidationFailedError
from storefront.schemas.promo_schemas import PromoValidateRequest, PromoValidation
from storefront.services.promo_service import validate_promo_code

router = APIRouter()


@router.post("/validate", response_model=PromoValidation)
def validate_code(
    data: PromoValidateRequest,
    session: Session = Depends(get_session),
):
    if not data.code or not data.code.strip():
        raise ValidationFailedError("Promotion code is required")

    return validate_promo_code(session, data.code, data.cart_total)
