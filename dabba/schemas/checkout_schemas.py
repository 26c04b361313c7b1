import uuid
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class CartLine(BaseModel):
    # kept as a raw string: the validator decides whether it is a canonical id
    catalog_item_id: str
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)   # price captured when the item was added
    cook_id: uuid.UUID
    item_name: Optional[str] = None


class CartSummaryRequest(BaseModel):
    items: List[CartLine]


class CheckoutRequest(BaseModel):
    items: List[CartLine]
    payment_method: Literal["cash", "online"] = "cash"
    # same key on a resubmit returns the first order instead of a new one
    idempotency_key: Optional[str] = Field(default=None, min_length=1, max_length=64)


class RazorpayCallback(BaseModel):
    """What the checkout widget hands back after a successful payment."""

    razorpay_payment_id: str = Field(min_length=1)
    razorpay_order_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)


class PaymentAbort(BaseModel):
    reason: Optional[str] = None
