from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.errors import NotFoundError
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.review import Review
from storefront.schemas.product_schemas import (
    AttributeOut,
    CategoryOut,
    ImageOut,
    Pagination,
    ProductDetail,
    ProductListItem,
    ProductListResponse,
    ReviewOut,
    ReviewSummary,
    ReviewUserOut,
    SeoOut,
    VariantOut,
)
from storefront.utils.pagination import paginate

router = APIRouter()

SORT_FIELDS = {
    "createdAt": Product.created_at,
    "created_at": Product.created_at,
    "price": Product.price,
    "name": Product.name,
}


def _categories(product: Product):
    return [CategoryOut(id=c.id, name=c.name, slug=c.slug) for c in product.categories]


@router.get("", response_model=ProductListResponse)
def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    sort: str = "createdAt",
    order: str = Query("desc", pattern="^(asc|desc)$"),
    featured: bool = False,
    session: Session = Depends(get_session),
):
    query = select(Product).where(Product.is_visible == True)  # noqa: E712

    if search:
        like = f"%{search}%"
        query = query.where(Product.name.ilike(like) | Product.description.ilike(like))

    if category:
        query = query.where(Product.categories.any(Category.slug == category))

    if featured:
        query = query.where(Product.is_featured == True)  # noqa: E712

    column = SORT_FIELDS.get(sort, Product.created_at)
    query = query.order_by(column.asc() if order == "asc" else column.desc(), Product.id)

    data = paginate(session=session, query=query, page=page, limit=limit)

    return ProductListResponse(
        products=[
            ProductListItem(
                id=p.id,
                name=p.name,
                slug=p.slug,
                price=p.price,
                compare_at_price=p.compare_at_price,
                image=p.default_image,
                categories=_categories(p),
            )
            for p in data["results"]
        ],
        pagination=Pagination(
            page=data["page"],
            limit=data["limit"],
            total_items=data["total_items"],
            total_pages=data["total_pages"],
        ),
    )


def _review_summary(session: Session, product: Product) -> ReviewSummary:
    reviews = session.exec(
        select(Review)
        .where(Review.product_id == product.id, Review.is_visible == True)  # noqa: E712
        .order_by(Review.created_at.desc(), Review.id.desc())
    ).all()

    average = sum(r.rating for r in reviews) / len(reviews) if reviews else 0

    return ReviewSummary(
        items=[
            ReviewOut(
                id=r.id,
                rating=r.rating,
                title=r.title,
                comment=r.comment,
                created_at=r.created_at,
                user=ReviewUserOut(id=r.user.id, name=r.user.name, image=r.user.image),
            )
            for r in reviews
        ],
        average_rating=average,
        count=len(reviews),
    )


@router.get("/{slug}", response_model=ProductDetail)
def product_detail(slug: str, session: Session = Depends(get_session)):
    product = session.exec(select(Product).where(Product.slug == slug)).first()

    if not product:
        raise NotFoundError("Product not found")

    return ProductDetail(
        id=product.id,
        name=product.name,
        slug=product.slug,
        description=product.description,
        price=product.price,
        compare_at_price=product.compare_at_price,
        sku=product.sku,
        inventory=product.inventory,
        images=[
            ImageOut(id=i.id, url=i.url, alt=i.alt or product.name, is_default=i.is_default)
            for i in product.images
        ],
        categories=_categories(product),
        attributes=[
            AttributeOut(id=a.id, name=a.name, value=a.value) for a in product.attributes
        ],
        variants=[
            VariantOut(
                id=v.id,
                name=v.name,
                sku=v.sku,
                price=v.price,
                inventory=v.inventory,
                attributes=v.attribute_map,
            )
            for v in product.variants
        ],
        reviews=_review_summary(session, product),
        seo=SeoOut(
            meta_title=product.meta_title or product.name,
            meta_description=product.meta_description or product.description[:160],
        ),
    )
