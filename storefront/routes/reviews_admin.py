import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.errors import NotFoundError
from storefront.models.review import Review
from storefront.models.user import User
from storefront.schemas.cart_schemas import MessageResponse
from storefront.schemas.product_schemas import ReviewAdminOut, ReviewVisibilityUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_review(session: Session, review_id: int) -> Review:
    review = session.get(Review, review_id)
    if not review:
        raise NotFoundError("Review not found")
    return review


@router.patch("/{review_id}", response_model=ReviewAdminOut)
def set_review_visibility(
    review_id: int,
    data: ReviewVisibilityUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    review = _get_review(session, review_id)
    review.is_visible = data.is_visible

    session.add(review)
    session.commit()
    session.refresh(review)

    logger.info(f"Review {review.id} visibility set to {review.is_visible} by admin {admin.id}")
    return review


@router.delete("/{review_id}", response_model=MessageResponse)
def delete_review(
    review_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    review = _get_review(session, review_id)

    session.delete(review)
    session.commit()

    logger.info(f"Review {review_id} deleted by admin {admin.id}")
    return MessageResponse(message="Review deleted successfully")
