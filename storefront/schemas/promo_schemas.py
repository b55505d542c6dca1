from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from storefront.models.promo_code import DiscountType
from storefront.schemas.base import CamelModel


class PromoValidateRequest(CamelModel):
    code: Optional[str] = None
    cart_total: float = 0.0


class PromoValidation(CamelModel):
    valid: bool = True
    code: str
    discount_type: DiscountType
    discount_amount: float
    original_amount: float
    description: Optional[str] = None


class PromoCodeCreate(CamelModel):
    code: str = Field(min_length=1)
    description: Optional[str] = None
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_amount: float = Field(gt=0)
    minimum_amount: Optional[float] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    usage_limit: Optional[int] = Field(default=None, ge=1)
    is_active: bool = True


class PromoCodeUpdate(CamelModel):
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_amount: Optional[float] = Field(default=None, gt=0)
    minimum_amount: Optional[float] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    usage_limit: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for name in ("discount_type", "discount_amount", "start_date", "is_active"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class PromoCodeOut(CamelModel):
    id: int
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    discount_amount: float
    minimum_amount: Optional[float] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    usage_limit: Optional[int] = None
    usage_count: int
    is_active: bool


class PromoCodeList(CamelModel):
    results: List[PromoCodeOut]
