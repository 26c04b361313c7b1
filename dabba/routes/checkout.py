import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from dabba.config import settings
from dabba.database import get_session
from dabba.dependencies.payments import reconciler_dependency
from dabba.models.user import User
from dabba.routes.orders import get_owned_order, order_dict
from dabba.schemas.checkout_schemas import (
    CartSummaryRequest,
    CheckoutRequest,
    PaymentAbort,
    RazorpayCallback,
)
from dabba.services.checkout_service import cart_summary, place_order
from dabba.services.payment_reconciler import PaymentOutcome, PaymentReconciler
from dabba.utils.token import AuthSession, get_auth_session, get_current_user

router = APIRouter()


@router.post("/summary")
def checkout_summary(data: CartSummaryRequest):
    return cart_summary(data.items, settings.tax_rate)


# Place order button on the checkout page

@router.post("/place-order")
def place_order_route(
    data: CheckoutRequest,
    session: Session = Depends(get_session),
    reconciler: PaymentReconciler = Depends(reconciler_dependency),
    auth: Optional[AuthSession] = Depends(get_auth_session),
):
    placed = place_order(
        session=session,
        reconciler=reconciler,
        auth=auth,
        request=data,
        tax_rate=settings.tax_rate,
    )
    order = placed.order

    if placed.payment_session is not None:
        message = "Order created. Please complete the payment."
    elif placed.replayed:
        message = "This order has already been placed."
    else:
        message = "Your order has been placed with cash on delivery."

    return {
        "message": message,
        "order_id": order.id,
        "replayed": placed.replayed,
        "order": order_dict(order),
        "razorpay": placed.payment_session,
        "redirect": f"/orders/{order.id}",
    }


@router.post("/orders/{order_id}/verify")
def verify_order_payment(
    order_id: uuid.UUID,
    payload: RazorpayCallback,
    session: Session = Depends(get_session),
    reconciler: PaymentReconciler = Depends(reconciler_dependency),
    current_user: User = Depends(get_current_user),
):
    order = get_owned_order(session, order_id, current_user)
    order = reconciler.settle(
        order,
        PaymentOutcome.success(
            payment_id=payload.razorpay_payment_id,
            gateway_order_id=payload.razorpay_order_id,
            signature=payload.razorpay_signature,
        ),
    )
    return {
        "message": "Your order has been placed and payment received.",
        "order": order_dict(order),
    }


# Widget dismissed, timed out or reported an error. Both fail the order and
# settle() raises, so the error handler writes the response.

@router.post("/orders/{order_id}/cancel")
def cancel_order_payment(
    order_id: uuid.UUID,
    payload: PaymentAbort | None = None,
    session: Session = Depends(get_session),
    reconciler: PaymentReconciler = Depends(reconciler_dependency),
    current_user: User = Depends(get_current_user),
):
    order = get_owned_order(session, order_id, current_user)
    reconciler.settle(order, PaymentOutcome.cancelled(payload.reason if payload else None))


@router.post("/orders/{order_id}/failed")
def report_payment_failure(
    order_id: uuid.UUID,
    payload: PaymentAbort | None = None,
    session: Session = Depends(get_session),
    reconciler: PaymentReconciler = Depends(reconciler_dependency),
    current_user: User = Depends(get_current_user),
):
    order = get_owned_order(session, order_id, current_user)
    reconciler.settle(order, PaymentOutcome.failed(payload.reason if payload else None))
