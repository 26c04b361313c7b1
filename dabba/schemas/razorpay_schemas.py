from typing import Any, Dict, Optional

from pydantic import BaseModel


# Fields are optional on purpose: missing ones are answered with a 400,
# not FastAPI's 422.
class CreatePaymentSessionRequest(BaseModel):
    amount: Optional[int] = None        # minor units (paise)
    currency: Optional[str] = None
    receipt: Optional[str] = None
    notes: Optional[Dict[str, Any]] = None


class VerifyPaymentRequest(BaseModel):
    razorpay_payment_id: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    order_db_id: Optional[str] = None
