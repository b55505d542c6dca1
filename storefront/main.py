import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from storefront.config import settings
from storefront.database import create_db_and_tables
from storefront.errors import InvalidIdentityError
from storefront.routes import (
    admin_orders,
    auth,
    cart,
    checkout,
    health,
    media,
    orders,
    products,
    products_admin,
    promo_codes,
    promo_codes_admin,
    reviews,
    reviews_admin,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.env == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body")
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": ", ".join(messages)},
    )


@app.exception_handler(InvalidIdentityError)
async def invalid_identity_handler(request: Request, exc: InvalidIdentityError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "No user or session identified"},
    )


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(products.router, prefix="/products", tags=["Products"])
app.include_router(reviews.router, prefix="/products", tags=["Reviews"])
app.include_router(products_admin.router, prefix="/admin/products", tags=["Admin Products"])
app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(promo_codes.router, prefix="/promocodes", tags=["Promo Codes"])
app.include_router(promo_codes_admin.router, prefix="/admin/promocodes", tags=["Admin Promo Codes"])
app.include_router(reviews_admin.router, prefix="/admin/reviews", tags=["Admin Reviews"])
app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(admin_orders.router, prefix="/admin/orders", tags=["Admin Orders"])
app.include_router(media.router, prefix="/admin/media", tags=["Admin Media"])
app.include_router(health.router, prefix="/health", tags=["Health"])

if settings.media_backend == "local":
    os.makedirs(settings.uploads_dir, exist_ok=True)
    app.mount(settings.uploads_url_prefix, StaticFiles(directory=settings.uploads_dir), name="uploads")


@app.get("/")
def root():
    return {
        "auth_endpoints": ["/auth/register", "/auth/login"],
        "products": ["/products", "/products/{slug}", "/products/{slug}/reviews"],
        "cart": ["/cart", "/cart/items/{id}"],
        "promocodes": ["/promocodes/validate"],
        "checkout": ["/checkout"],
        "orders": ["/orders", "/orders/{number}"],
        "admin": [
            "/admin/products", "/admin/promocodes", "/admin/reviews",
            "/admin/orders", "/admin/media/upload", "/admin/media/cleanup",
        ],
    }
