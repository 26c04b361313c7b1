import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from dabba.database import get_session
from dabba.models.order import Order
from dabba.models.order_item import OrderItem
from dabba.models.user import User
from dabba.services.order_event_service import order_timeline
from dabba.utils.pagination import paginate
from dabba.utils.token import get_current_user

router = APIRouter()


def order_dict(order: Order) -> dict:
    return {
        "id": order.id,
        "cook_id": order.cook_id,
        "status": order.status,
        "total": order.total,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "payment_id": order.payment_id,
        "delivery_address": order.delivery_address,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def order_detail(session: Session, order: Order) -> dict:
    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order.id)
    ).all()
    return {
        **order_dict(order),
        "items": [
            {
                "menu_id": item.menu_id,
                "quantity": item.quantity,
                "price_at_time": item.price_at_time,
                "total": item.price_at_time * item.quantity,
            }
            for item in items
        ],
        "timeline": order_timeline(session, order.id),
    }


def get_owned_order(session: Session, order_id: uuid.UUID, user: User) -> Order:
    order = session.get(Order, order_id)
    if not order or order.user_id != user.id:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.get("")
def list_my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status: str | None = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = select(Order).where(Order.user_id == current_user.id)
    if status:
        query = query.where(Order.status == status)
    query = query.order_by(Order.created_at.desc())

    return paginate(session=session, query=query, page=page, limit=limit, serialize=order_dict)


@router.get("/{order_id}")
def get_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return order_detail(session, get_owned_order(session, order_id, current_user))
