import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from dabba.constants import order_status
from dabba.models.order import Order
from dabba.models.user import User
from dabba.schemas.checkout_schemas import CartLine, CheckoutRequest
from dabba.services.cart_validator import ValidatedCheckout, validate_checkout
from dabba.services.errors import OrderCreationFailed, OrderStateConflict
from dabba.services.order_writer import create_order
from dabba.services.payment_reconciler import PaymentReconciler
from dabba.utils.money import order_totals, to_paise
from dabba.utils.token import AuthSession

logger = logging.getLogger(__name__)


@dataclass
class PlacedOrder:
    order: Order
    payment_session: Optional[Dict[str, Any]] = None
    replayed: bool = False


def cart_summary(items: Sequence[CartLine], tax_rate: Decimal) -> Dict[str, Any]:
    subtotal, tax, total = order_totals(
        ((line.unit_price, line.quantity) for line in items), tax_rate
    )
    return {
        "items": [
            {
                "catalog_item_id": line.catalog_item_id,
                "item_name": line.item_name,
                "quantity": line.quantity,
                "price": line.unit_price,
                "total": line.unit_price * line.quantity,
            }
            for line in items
        ],
        "subtotal": subtotal,
        "tax": tax,
        "tax_percentage": tax_rate * 100,
        "total": total,
    }


def _find_replay(session: Session, auth: AuthSession, key: Optional[str]) -> Optional[Order]:
    if not key:
        return None
    return session.exec(
        select(Order).where(Order.user_id == auth.user_id, Order.idempotency_key == key)
    ).first()


def _replayed_session(order: Order, reconciler: PaymentReconciler) -> Optional[Dict[str, Any]]:
    # only a still-pending online order may be paid again
    if (
        order.payment_method != order_status.ONLINE
        or order.status != order_status.PENDING
        or not order.gateway_order_id
    ):
        return None
    return {
        "id": order.gateway_order_id,
        "key": reconciler.gateway.key_id,
        "amount": to_paise(order.total),
        "currency": reconciler.currency,
        "receipt": None,
    }


def prefill(checkout: ValidatedCheckout) -> Dict[str, str]:
    return {"name": checkout.customer_name, "email": checkout.email, "contact": checkout.phone}


def _with_widget_details(
    payment_session: Optional[Dict[str, Any]], order: Order, checkout: ValidatedCheckout
) -> Optional[Dict[str, Any]]:
    if payment_session is not None:
        payment_session["prefill"] = prefill(checkout)
        payment_session["description"] = f"Payment for order #{str(order.id)[:8]}"
    return payment_session


def _replay(
    existing: Order, key: str, reconciler: PaymentReconciler, checkout: ValidatedCheckout
) -> PlacedOrder:
    if existing.status in (order_status.PAYMENT_FAILED, order_status.CANCELLED):
        logger.info(f"Idempotency key {key} already spent on {existing.status} order {existing.id}")
        raise OrderStateConflict(
            "This checkout already ended without payment. Start a new checkout to try again."
        )

    logger.info(f"Replaying order {existing.id} ({existing.status}) for idempotency key {key}")
    return PlacedOrder(
        order=existing,
        payment_session=_with_widget_details(
            _replayed_session(existing, reconciler), existing, checkout
        ),
        replayed=True,
    )


def place_order(
    *,
    session: Session,
    reconciler: PaymentReconciler,
    auth: Optional[AuthSession],
    request: CheckoutRequest,
    tax_rate: Decimal,
) -> PlacedOrder:
    """
    Validator -> Order Writer -> start of payment, in that order.

    A resubmit carrying an idempotency key the user already used returns the
    order created the first time instead of writing a second one. A pending
    online order gets its payment session back; a paid or delivered one gets
    none. A key whose order ended without payment is spent.
    """
    profile = session.get(User, auth.user_id) if auth else None
    checkout = validate_checkout(auth, profile, request.items)
    key = request.idempotency_key

    existing = _find_replay(session, auth, key)
    if existing is not None:
        return _replay(existing, key, reconciler, checkout)

    try:
        order = create_order(
            session,
            checkout,
            request.payment_method,
            tax_rate=tax_rate,
            idempotency_key=key,
        )
    except OrderCreationFailed as exc:
        # a concurrent submit with the same key won the insert
        if not key or not isinstance(exc.__cause__, IntegrityError):
            raise
        existing = _find_replay(session, auth, key)
        if existing is None:
            raise
        return _replay(existing, key, reconciler, checkout)

    payment_session = reconciler.start_payment(order)
    return PlacedOrder(
        order=order, payment_session=_with_widget_details(payment_session, order, checkout)
    )
