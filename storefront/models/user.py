from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime

from storefront.utils.clock import utcnow


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    password: str
    role: str = Field(default="customer")  # customer | admin
    image: Optional[str] = None
    can_login: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
