from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime

from storefront.utils.clock import utcnow


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class PromoCode(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True, unique=True)  # always stored upper-case
    description: Optional[str] = None

    discount_type: DiscountType = Field(default=DiscountType.PERCENTAGE)
    discount_amount: float
    minimum_amount: Optional[float] = None

    start_date: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    end_date: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    usage_limit: Optional[int] = None
    usage_count: int = 0
    is_active: bool = True

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
