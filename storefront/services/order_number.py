import logging

from sqlmodel import Session, select

from storefront.config import settings
from storefront.models.order import OrderNumberSequence

logger = logging.getLogger(__name__)

ORDER_SEQUENCE = "order"


def format_order_number(value: int) -> str:
    return f"{settings.order_number_prefix}-{value}"


def allocate_order_number(session: Session) -> str:
    """Take the next order number from the counter row.

    The row is locked for the rest of the caller's transaction, so two
    checkouts can never read the same value. Nothing is committed here.
    """
    sequence = session.exec(
        select(OrderNumberSequence)
        .where(OrderNumberSequence.name == ORDER_SEQUENCE)
        .with_for_update()
    ).first()

    if sequence is None:
        sequence = OrderNumberSequence(
            name=ORDER_SEQUENCE, next_value=settings.order_number_start
        )

    value = sequence.next_value
    sequence.next_value = value + 1
    session.add(sequence)
    session.flush()

    return format_order_number(value)


def ensure_order_sequence(session: Session):
    """Create the counter row at the configured start value if it is missing."""
    existing = session.get(OrderNumberSequence, ORDER_SEQUENCE)
    if existing is not None:
        return

    session.add(OrderNumberSequence(name=ORDER_SEQUENCE, next_value=settings.order_number_start))
    session.commit()
    logger.info(f"Order number sequence seeded at {settings.order_number_start}")
