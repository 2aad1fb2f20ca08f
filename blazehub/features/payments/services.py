"""
➡️ But : Maquettes des passerelles de paiement (Stripe, Razorpay).

Aucun appel réseau, aucune vérification de signature, aucun crédit de coins :
le client appelle ensuite /user/coins/add.

🔹 Désactivées hors démo : PAYMENTS_DEMO_MODE=false -> 503.
"""

import logging
import secrets

from fastapi import HTTPException, status

from blazehub.security.guard import Principal
from blazehub.features.payments.schemas import (
    PaymentIntentIn,
    PaymentIntentOut,
    RazorpayVerifyIn,
    RazorpayVerifyOut,
)

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(self, *, demo_mode: bool):
        self.demo_mode = demo_mode

    def _ensure_enabled(self) -> None:
        if not self.demo_mode:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Payments are not available",
            )

    def create_payment_intent(self, payload: PaymentIntentIn, principal: Principal) -> PaymentIntentOut:
        self._ensure_enabled()
        logger.info("Mock payment intent for user %s: %d coins", principal.id, payload.coins)
        return PaymentIntentOut(client_secret=f"pi_mock_{secrets.token_hex(5)}")

    def verify_razorpay(self, payload: RazorpayVerifyIn, principal: Principal) -> RazorpayVerifyOut:
        self._ensure_enabled()
        if not payload.razorpay_payment_id or not payload.razorpay_order_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment verification failed")
        logger.info("Mock Razorpay verification for user %s (order %s)", principal.id, payload.razorpay_order_id)
        return RazorpayVerifyOut(success=True, verified=True)
