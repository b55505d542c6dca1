import logging

from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.errors import ConflictError, NotFoundError
from storefront.models.product import Product
from storefront.models.review import Review
from storefront.models.user import User
from storefront.schemas.product_schemas import ReviewCreate, ReviewOut, ReviewUserOut
from storefront.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{slug}/reviews", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
def create_review(
    slug: str,
    data: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    product = session.exec(
        select(Product).where(Product.slug == slug, Product.is_visible == True)  # noqa: E712
    ).first()
    if not product:
        raise NotFoundError("Product not found")

    existing = session.exec(
        select(Review).where(Review.product_id == product.id, Review.user_id == current_user.id)
    ).first()
    if existing:
        raise ConflictError("You have already reviewed this product")

    review = Review(
        product_id=product.id,
        user_id=current_user.id,
        rating=data.rating,
        title=data.title,
        comment=data.comment,
    )
    session.add(review)
    session.commit()
    session.refresh(review)

    logger.info(f"Review {review.id} added to {product.slug} by user {current_user.id}")
    return ReviewOut(
        id=review.id,
        rating=review.rating,
        title=review.title,
        comment=review.comment,
        created_at=review.created_at,
        user=ReviewUserOut(id=current_user.id, name=current_user.name, image=current_user.image),
    )
