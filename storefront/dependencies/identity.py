from typing import Optional

from fastapi import Depends, Request

from storefront.config import settings
from storefront.models.user import User
from storefront.utils.token import get_optional_user


class CallerIdentity:
    """Who is calling: an authenticated user, an anonymous session, both or neither."""

    def __init__(self, user: Optional[User], session_id: Optional[str]):
        self.user = user
        self.session_id = session_id

    @property
    def user_id(self) -> Optional[int]:
        return self.user.id if self.user else None

    @property
    def is_anonymous(self) -> bool:
        return self.user is None and not self.session_id


def get_session_id(request: Request) -> Optional[str]:
    return request.cookies.get(settings.session_cookie_name) or None


def get_identity(
    request: Request,
    user: Optional[User] = Depends(get_optional_user),
) -> CallerIdentity:
    return CallerIdentity(user=user, session_id=get_session_id(request))
