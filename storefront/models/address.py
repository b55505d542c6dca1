from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime

from storefront.utils.clock import utcnow


class Address(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id")
    street: str
    city: str
    state: str
    postal_code: str
    country: str
    is_default: bool = False
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
