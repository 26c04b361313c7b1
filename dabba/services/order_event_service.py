import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from dabba.models.order_event import OrderEvent

ORDER_PLACED = "order_placed"
PAYMENT_STARTED = "payment_started"
PAYMENT_SUCCESS = "payment_success"
PAYMENT_CANCELLED = "payment_cancelled"
PAYMENT_FAILED = "payment_failed"
DELIVERED = "delivered"


def log_order_event(
    session: Session,
    order_id: uuid.UUID,
    event_type: str,
    label: str,
    created_by: str = "system",
    meta: Optional[dict] = None,
):
    """
    Append-only event log for the order timeline. The caller commits.
    """
    session.add(
        OrderEvent(
            order_id=order_id,
            event_type=event_type,
            label=label,
            meta=meta,
            created_by=created_by,
            created_at=datetime.utcnow(),
        )
    )


def order_timeline(session: Session, order_id: uuid.UUID):
    events = session.exec(
        select(OrderEvent)
        .where(OrderEvent.order_id == order_id)
        .order_by(OrderEvent.created_at)
    ).all()
    return [
        {
            "event_type": e.event_type,
            "label": e.label,
            "meta": e.meta,
            "created_by": e.created_by,
            "created_at": e.created_at,
        }
        for e in events
    ]
