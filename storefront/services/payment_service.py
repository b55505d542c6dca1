import logging
from uuid import uuid4

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("credit_card", "paypal")


class SimulatedPaymentGateway:
    """Stand-in for a real provider: every charge succeeds."""

    def charge(self, amount: float, method: str) -> str:
        payment_id = f"PAY-{uuid4().hex[:13]}"
        logger.info(f"Simulated {method} payment {payment_id} for {amount:.2f}")
        return payment_id


payment_gateway = SimulatedPaymentGateway()
