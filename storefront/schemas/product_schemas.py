from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from storefront.schemas.base import CamelModel


class CategoryOut(CamelModel):
    id: int
    name: str
    slug: str


class ProductListItem(CamelModel):
    id: int
    name: str
    slug: str
    price: float
    compare_at_price: Optional[float] = None
    image: Optional[str] = None
    categories: List[CategoryOut] = []


class Pagination(CamelModel):
    page: int
    limit: int
    total_items: int
    total_pages: int


class ProductListResponse(CamelModel):
    products: List[ProductListItem]
    pagination: Pagination


class ImageOut(CamelModel):
    id: int
    url: str
    alt: Optional[str] = None
    is_default: bool


class VariantOut(CamelModel):
    id: int
    name: str
    sku: Optional[str] = None
    price: Optional[float] = None
    inventory: int
    attributes: Dict[str, Any] = {}


class AttributeOut(CamelModel):
    id: int
    name: str
    value: str


class ReviewUserOut(CamelModel):
    id: int
    name: str
    image: Optional[str] = None


class ReviewOut(CamelModel):
    id: int
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    created_at: datetime
    user: ReviewUserOut


class ReviewSummary(CamelModel):
    items: List[ReviewOut] = []
    average_rating: float = 0
    count: int = 0


class SeoOut(CamelModel):
    meta_title: str
    meta_description: str


class ProductDetail(CamelModel):
    id: int
    name: str
    slug: str
    description: str
    price: float
    compare_at_price: Optional[float] = None
    sku: Optional[str] = None
    inventory: int
    images: List[ImageOut] = []
    categories: List[CategoryOut] = []
    attributes: List[AttributeOut] = []
    variants: List[VariantOut] = []
    reviews: ReviewSummary = ReviewSummary()
    seo: SeoOut


class ImageIn(CamelModel):
    id: Optional[int] = None
    url: str
    alt: Optional[str] = None


class VariantIn(CamelModel):
    name: str
    sku: Optional[str] = None
    price: Optional[float] = None
    inventory: int = Field(default=0, ge=0)
    attributes: Dict[str, Any] = {}


class AttributeIn(CamelModel):
    name: str = Field(min_length=1)
    value: str


class ProductCreate(CamelModel):
    name: str = Field(min_length=1)
    slug: Optional[str] = None
    description: str = ""
    price: float = Field(gt=0)
    compare_at_price: Optional[float] = None
    sku: Optional[str] = None
    inventory: int = Field(default=0, ge=0)
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    is_visible: bool = True
    is_featured: bool = False
    categories: List[int] = []
    images: List[ImageIn] = []
    attributes: List[AttributeIn] = []
    variants: List[VariantIn] = []


class ProductUpdate(CamelModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0)
    compare_at_price: Optional[float] = None
    sku: Optional[str] = None
    inventory: Optional[int] = Field(default=None, ge=0)
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    is_visible: Optional[bool] = None
    is_featured: Optional[bool] = None
    categories: Optional[List[int]] = None
    images: Optional[List[ImageIn]] = None
    attributes: Optional[List[AttributeIn]] = None


class ProductOut(CamelModel):
    id: int
    name: str
    slug: str
    description: str
    price: float
    compare_at_price: Optional[float] = None
    sku: Optional[str] = None
    inventory: int
    is_visible: bool
    is_featured: bool
    created_at: datetime
    updated_at: datetime


class ProductResponse(CamelModel):
    message: str
    product: ProductOut


class ReviewCreate(CamelModel):
    rating: int = Field(ge=1, le=5)
    title: Optional[str] = None
    comment: Optional[str] = None


class ReviewVisibilityUpdate(CamelModel):
    is_visible: bool


class ReviewAdminOut(CamelModel):
    id: int
    product_id: int
    user_id: int
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    is_visible: bool
    created_at: datetime
