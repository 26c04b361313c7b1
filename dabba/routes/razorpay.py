import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from dabba.database import get_session
from dabba.dependencies.payments import reconciler_dependency
from dabba.models.order import Order
from dabba.schemas.razorpay_schemas import CreatePaymentSessionRequest, VerifyPaymentRequest
from dabba.services.payment_gateway import RazorpayGateway, get_gateway
from dabba.services.payment_reconciler import PaymentOutcome, PaymentReconciler
from dabba.utils.token import AuthSession, get_auth_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-order")
def create_razorpay_order(
    payload: CreatePaymentSessionRequest,
    gateway: RazorpayGateway = Depends(get_gateway),
):
    """Create a Razorpay order; `amount` is already in paise."""
    if not payload.amount or not payload.currency:
        raise HTTPException(status_code=400, detail="Amount and currency are required")

    try:
        return gateway.create_order(
            amount=payload.amount,
            currency=payload.currency,
            receipt=payload.receipt or f"receipt_{uuid.uuid4()}",
            notes=payload.notes,
        )
    except Exception as exc:
        logger.exception("Error creating Razorpay order")
        raise HTTPException(status_code=500, detail=str(exc) or "Failed to create order")


@router.post("/verify-payment")
def verify_razorpay_payment(
    payload: VerifyPaymentRequest,
    session: Session = Depends(get_session),
    gateway: RazorpayGateway = Depends(get_gateway),
    reconciler: PaymentReconciler = Depends(reconciler_dependency),
    auth: Optional[AuthSession] = Depends(get_auth_session),
):
    """
    Check the checkout widget's callback. With `order_db_id` the order is
    settled too: paid plus cook payable, or payment_failed on a bad signature.
    Only the customer who placed the order may settle it.
    """
    payment_id = payload.razorpay_payment_id
    gateway_order_id = payload.razorpay_order_id
    signature = payload.razorpay_signature

    if not payment_id or not gateway_order_id or not signature:
        raise HTTPException(
            status_code=400,
            detail="Payment verification failed: Missing parameters",
        )

    if payload.order_db_id:
        if auth is None:
            raise HTTPException(status_code=401, detail="Could not validate credentials")

        try:
            order_id = uuid.UUID(payload.order_db_id)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid order id")

        order = session.get(Order, order_id)
        if not order or order.user_id != auth.user_id:
            raise HTTPException(status_code=404, detail="Order not found")

        reconciler.settle(order, PaymentOutcome.success(payment_id, gateway_order_id, signature))

    elif not gateway.verify_signature(gateway_order_id, payment_id, signature):
        raise HTTPException(
            status_code=400,
            detail="Payment verification failed: Invalid signature",
        )

    return {
        "success": True,
        "payment_id": payment_id,
        "order_id": gateway_order_id,
    }
