from fastapi import APIRouter, Depends

from blazehub.api.dependencies import get_payment_service
from blazehub.security.guard import Principal, guard
from blazehub.features.payments.services import PaymentService
from blazehub.features.payments.schemas import (
    PaymentIntentIn,
    PaymentIntentOut,
    RazorpayVerifyIn,
    RazorpayVerifyOut,
)

router = APIRouter(
    prefix="/payments",
    tags=["payments"],
    responses={503: {"description": "Paiements désactivés (PAYMENTS_DEMO_MODE=false)"}},
)


@router.post(
    "/stripe/create-payment-intent",
    summary="Créer un paiement Stripe (maquette)",
    response_model=PaymentIntentOut,
)
def create_payment_intent(
    payload: PaymentIntentIn,
    principal: Principal = Depends(guard("payments.stripe_intent")),
    svc: PaymentService = Depends(get_payment_service),
):
    return svc.create_payment_intent(payload, principal)


@router.post(
    "/razorpay/verify",
    summary="Vérifier un paiement Razorpay (maquette)",
    response_model=RazorpayVerifyOut,
)
def verify_razorpay(
    payload: RazorpayVerifyIn,
    principal: Principal = Depends(guard("payments.razorpay_verify")),
    svc: PaymentService = Depends(get_payment_service),
):
    return svc.verify_razorpay(payload, principal)
