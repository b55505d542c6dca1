import json
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from slugify import slugify
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.errors import ConflictError, NotFoundError, ValidationFailedError
from storefront.models.category import Category
from storefront.models.product import Product, ProductAttribute, ProductImage, ProductVariant
from storefront.models.user import User
from storefront.schemas.cart_schemas import MessageResponse
from storefront.schemas.product_schemas import (
    AttributeIn,
    ImageIn,
    ProductCreate,
    ProductOut,
    ProductResponse,
    ProductUpdate,
)
from storefront.utils.clock import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_by_slug(session: Session, slug: str) -> Product:
    product = session.exec(select(Product).where(Product.slug == slug)).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def _load_categories(session: Session, category_ids: List[int]) -> List[Category]:
    categories = []
    for category_id in category_ids:
        category = session.get(Category, category_id)
        if not category:
            raise ValidationFailedError(f"Invalid category id {category_id}")
        categories.append(category)
    return categories


def _replace_images(product: Product, images: List[ImageIn]):
    # the first image in the list becomes the default one
    existing = {image.id: image for image in product.images}
    kept = []

    for index, data in enumerate(images):
        image = existing.get(data.id) if data.id else None
        if image is None:
            image = ProductImage(url=data.url)
        image.url = data.url
        image.alt = data.alt or product.name
        image.is_default = index == 0
        image.sort_order = index
        kept.append(image)

    product.images = kept


def _replace_attributes(product: Product, attributes: List[AttributeIn]):
    product.attributes = [ProductAttribute(name=a.name, value=a.value) for a in attributes]


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    slug = data.slug.strip() if data.slug and data.slug.strip() else slugify(data.name)

    if session.exec(select(Product).where(Product.slug == slug)).first():
        raise ConflictError("Product with this slug already exists")

    product = Product(
        name=data.name,
        slug=slug,
        description=data.description,
        price=data.price,
        compare_at_price=data.compare_at_price,
        sku=data.sku,
        inventory=data.inventory,
        meta_title=data.meta_title,
        meta_description=data.meta_description,
        is_visible=data.is_visible,
        is_featured=data.is_featured,
    )
    product.categories = _load_categories(session, data.categories)
    _replace_images(product, data.images)
    _replace_attributes(product, data.attributes)
    product.variants = [
        ProductVariant(
            name=v.name,
            sku=v.sku,
            price=v.price,
            inventory=v.inventory,
            attributes=json.dumps(v.attributes) if v.attributes else None,
        )
        for v in data.variants
    ]

    session.add(product)
    session.commit()
    session.refresh(product)

    logger.info(f"Product {product.slug} created by admin {admin.id}")
    return ProductResponse(
        message="Product created successfully",
        product=ProductOut.model_validate(product),
    )


@router.put("/{slug}", response_model=ProductResponse)
def update_product(
    slug: str,
    data: ProductUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    product = _get_by_slug(session, slug)

    if data.slug and data.slug != slug:
        clash = session.exec(select(Product).where(Product.slug == data.slug)).first()
        if clash and clash.id != product.id:
            raise ConflictError("Product with this slug already exists")

    fields = data.model_dump(exclude_unset=True, exclude={"categories", "images", "attributes"})
    for field, value in fields.items():
        if value is not None:
            setattr(product, field, value)

    if data.categories is not None:
        product.categories = _load_categories(session, data.categories)

    if data.images is not None:
        _replace_images(product, data.images)

    if data.attributes is not None:
        _replace_attributes(product, data.attributes)

    product.updated_at = utcnow()
    session.add(product)
    session.commit()
    session.refresh(product)

    return ProductResponse(
        message="Product updated successfully",
        product=ProductOut.model_validate(product),
    )


@router.delete("/{slug}", response_model=MessageResponse)
def delete_product(
    slug: str,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    product = _get_by_slug(session, slug)

    session.delete(product)
    session.commit()

    logger.info(f"Product {slug} deleted by admin {admin.id}")
    return MessageResponse(message="Product deleted successfully")
