"""HTTP-facing error taxonomy.

Every error is an ``HTTPException`` so services can raise them directly and
FastAPI renders them as ``{"detail": "<message>"}``.
"""
from enum import Enum

from fastapi import HTTPException, status


class UnauthorizedError(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class ForbiddenError(HTTPException):
    def __init__(self, detail: str = "Admin access required"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ValidationFailedError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InsufficientInventoryError(ValidationFailedError):
    def __init__(self, detail: str = "Not enough inventory available"):
        super().__init__(detail)


class InvalidIdentityError(ValueError):
    """Neither a user id nor an anonymous session id was supplied."""


class PromoRejection(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INACTIVE = "INACTIVE"
    NOT_YET_STARTED = "NOT_YET_STARTED"
    EXPIRED = "EXPIRED"
    USAGE_LIMIT_REACHED = "USAGE_LIMIT_REACHED"
    BELOW_MINIMUM_AMOUNT = "BELOW_MINIMUM_AMOUNT"


PROMO_REJECTION_MESSAGES = {
    PromoRejection.NOT_FOUND: "Invalid promotion code",
    PromoRejection.INACTIVE: "This promotion code is not active",
    PromoRejection.NOT_YET_STARTED: "This promotion code is not valid yet",
    PromoRejection.EXPIRED: "This promotion code has expired",
    PromoRejection.USAGE_LIMIT_REACHED: "This promotion code has reached its usage limit",
    PromoRejection.BELOW_MINIMUM_AMOUNT: "Cart total does not meet the minimum amount for this code",
}


class PromoRejectedError(HTTPException):
    def __init__(self, reason: PromoRejection):
        self.reason = reason
        code = (
            status.HTTP_404_NOT_FOUND
            if reason == PromoRejection.NOT_FOUND
            else status.HTTP_400_BAD_REQUEST
        )
        super().__init__(status_code=code, detail=PROMO_REJECTION_MESSAGES[reason])
