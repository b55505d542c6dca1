import logging

from sqlalchemy import update
from sqlmodel import Session

from storefront.errors import InsufficientInventoryError
from storefront.models.product import Product, ProductVariant

logger = logging.getLogger(__name__)


def _conditional_decrement(session: Session, model, row_id: int, quantity: int) -> bool:
    result = session.execute(
        update(model)
        .where(model.id == row_id, model.inventory >= quantity)
        .values(inventory=model.inventory - quantity)
    )
    return result.rowcount == 1


def decrement_inventory(session: Session, product_id: int, quantity: int, variant_id=None):
    """Take ``quantity`` units off a product (and its variant) inside the caller's transaction.

    The update only applies while enough stock remains; otherwise
    ``InsufficientInventoryError`` is raised and the caller rolls back.
    """
    if not _conditional_decrement(session, Product, product_id, quantity):
        logger.warning(f"Insufficient stock for product {product_id}, requested {quantity}")
        raise InsufficientInventoryError("Not enough inventory available")

    if variant_id and not _conditional_decrement(session, ProductVariant, variant_id, quantity):
        logger.warning(f"Insufficient stock for variant {variant_id}, requested {quantity}")
        raise InsufficientInventoryError("Not enough variant inventory available")

    logger.info(f"Reduced inventory of product {product_id} by {quantity}")
