import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict

from sqlmodel import Session, select

from dabba.constants import order_status
from dabba.models.cook import Cook
from dabba.models.cook_payment import CookPayment
from dabba.models.order import Order
from dabba.models.user import User
from dabba.services import order_event_service as events
from dabba.services.errors import OrderStateConflict
from dabba.services.payment_reconciler import create_payable

logger = logging.getLogger(__name__)


def confirm_delivery(session: Session, order: Order, cook: Cook) -> Order:
    """
    Mark an order delivered by its cook.

    Cash is collected at the door, so this is where a cash order becomes
    paid and the cook's payable is written. Online orders must already be
    paid; their payable exists since verification.
    """
    if order.status == order_status.DELIVERED:
        return order

    is_cash = order.payment_method == order_status.CASH
    if is_cash and order.status != order_status.PENDING:
        raise OrderStateConflict(f"Cannot deliver a cash order in status {order.status}")
    if not is_cash and order.status != order_status.PAID:
        raise OrderStateConflict("Online orders can only be delivered once paid")

    order.status = order_status.DELIVERED
    order.updated_at = datetime.utcnow()
    if is_cash:
        order.payment_status = order_status.PAYMENT_PAID
        create_payable(session, order)

    session.add(order)
    events.log_order_event(
        session,
        order.id,
        events.DELIVERED,
        "Order delivered",
        created_by=str(cook.user_id),
        meta={"payment_method": order.payment_method},
    )
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.id} delivered by cook {cook.id}")
    return order


def cook_earnings(session: Session, cook_id: uuid.UUID) -> Dict[str, Any]:
    rows = session.exec(
        select(CookPayment, Order, User)
        .join(Order, Order.id == CookPayment.order_id)
        .join(User, User.id == Order.user_id, isouter=True)
        .where(CookPayment.cook_id == cook_id)
        .order_by(CookPayment.created_at.desc())
    ).all()

    payments = []
    total = Decimal("0")
    pending = Decimal("0")

    for payment, order, customer in rows:
        total += payment.amount
        if payment.status == order_status.PAYABLE_PENDING:
            pending += payment.amount

        customer_name = "Unknown Customer"
        if customer is not None:
            customer_name = f"{customer.first_name} {customer.last_name}".strip() or customer_name

        payments.append({
            "id": payment.id,
            "order_id": payment.order_id,
            "amount": payment.amount,
            "status": payment.status,
            "created_at": payment.created_at,
            "customer_name": customer_name,
            "payment_method": order.payment_method,
        })

    return {
        "total_earnings": total,
        "pending_earnings": pending,
        "payments": payments,
    }
