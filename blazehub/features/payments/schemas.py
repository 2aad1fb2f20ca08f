from typing import Optional

from pydantic import Field

from blazehub.core.schemas import APIModel


class PaymentIntentIn(APIModel):
    amount: int = Field(gt=0)
    coins: int = Field(gt=0)

class PaymentIntentOut(APIModel):
    client_secret: str

class RazorpayVerifyIn(APIModel):
    razorpay_payment_id: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    coins: Optional[int] = None

class RazorpayVerifyOut(APIModel):
    success: bool
    verified: bool
