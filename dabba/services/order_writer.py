import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from dabba.constants import order_status
from dabba.models.order import Order
from dabba.models.order_item import OrderItem
from dabba.services.cart_validator import ValidatedCheckout
from dabba.services.errors import OrderCreationFailed, OrderLineCreationFailed
from dabba.services.order_event_service import ORDER_PLACED, log_order_event
from dabba.utils.money import order_totals

logger = logging.getLogger(__name__)


def checkout_totals(checkout: ValidatedCheckout, tax_rate: Decimal):
    return order_totals(
        ((line.unit_price, line.quantity) for line in checkout.lines), tax_rate
    )


def insert_order_lines(session: Session, order: Order, checkout: ValidatedCheckout) -> None:
    """Write every line of the order in one commit, together with the placed event."""
    session.add_all(
        [
            OrderItem(
                order_id=order.id,
                menu_id=line.catalog_item_id,
                quantity=line.quantity,
                price_at_time=line.unit_price,
            )
            for line in checkout.lines
        ]
    )
    log_order_event(
        session,
        order.id,
        ORDER_PLACED,
        "Order placed",
        created_by=str(checkout.user_id),
        meta={"payment_method": order.payment_method, "lines": len(checkout.lines)},
    )
    session.commit()


def _discard_order(session: Session, order: Order) -> None:
    try:
        session.delete(order)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception(f"Compensating delete failed for order {order.id}, order left behind")
        raise OrderLineCreationFailed() from exc


def create_order(
    session: Session,
    checkout: ValidatedCheckout,
    payment_method: str,
    *,
    tax_rate: Decimal,
    idempotency_key: Optional[str] = None,
) -> Order:
    """
    Persist a validated cart as an order plus its lines.

    If the lines can't be written the freshly created order is deleted
    again, so neither customer nor cook ever sees an empty order.
    """
    _, _, total = checkout_totals(checkout, tax_rate)
    now = datetime.utcnow()

    order = Order(
        user_id=checkout.user_id,
        cook_id=checkout.cook_id,
        status=order_status.PENDING,
        total=total,
        payment_method=payment_method,
        payment_status=order_status.PAYMENT_PENDING,
        idempotency_key=idempotency_key,
        delivery_address=dict(checkout.address),
        created_at=now,
        updated_at=now,
    )

    try:
        session.add(order)
        session.commit()
        session.refresh(order)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(f"Order creation failed for user {checkout.user_id}: {exc}")
        raise OrderCreationFailed() from exc

    try:
        insert_order_lines(session, order, checkout)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(f"Order items failed for order {order.id}, deleting order: {exc}")
        _discard_order(session, order)
        raise OrderLineCreationFailed() from exc

    logger.info(
        f"Order {order.id} created for user {checkout.user_id}: "
        f"{len(checkout.lines)} lines, total {total}, {payment_method}"
    )
    return order
