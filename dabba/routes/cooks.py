import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from dabba.database import get_session
from dabba.dependencies.cook import require_cook
from dabba.models.cook import Cook
from dabba.models.menu_item import MenuItem
from dabba.models.order import Order
from dabba.models.user import User
from dabba.routes.orders import order_detail, order_dict
from dabba.schemas.user_schemas import CookRegister
from dabba.services.cook_payment_service import confirm_delivery, cook_earnings
from dabba.utils.pagination import paginate
from dabba.utils.token import get_current_user

router = APIRouter()


@router.post("/register")
def register_kitchen(
    data: CookRegister,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if current_user.role != "cook":
        raise HTTPException(403, "Only cook accounts can register a kitchen")

    existing = session.exec(select(Cook).where(Cook.user_id == current_user.id)).first()
    if existing:
        raise HTTPException(400, "Kitchen already registered")

    cook = Cook(
        user_id=current_user.id,
        first_name=data.first_name or current_user.first_name,
        last_name=data.last_name or current_user.last_name,
        kitchen_name=data.kitchen_name,
    )
    session.add(cook)
    session.commit()
    session.refresh(cook)

    return {"message": "Kitchen registered", "cook_id": cook.id}


@router.get("/me/payments")
def my_payments(
    session: Session = Depends(get_session),
    cook: Cook = Depends(require_cook),
):
    return cook_earnings(session, cook.id)


@router.get("/me/orders")
def my_incoming_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status: str | None = None,
    session: Session = Depends(get_session),
    cook: Cook = Depends(require_cook),
):
    query = select(Order).where(Order.cook_id == cook.id)
    if status:
        query = query.where(Order.status == status)
    query = query.order_by(Order.created_at.desc())

    return paginate(session=session, query=query, page=page, limit=limit, serialize=order_dict)


@router.post("/orders/{order_id}/deliver")
def deliver_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    cook: Cook = Depends(require_cook),
):
    order = session.get(Order, order_id)
    if not order or order.cook_id != cook.id:
        raise HTTPException(404, "Order not found")

    order = confirm_delivery(session, order, cook)
    return {"message": "Order marked as delivered", "order": order_detail(session, order)}


# Public menu for the browse page

@router.get("/{cook_id}/menu")
def cook_menu(cook_id: uuid.UUID, session: Session = Depends(get_session)):
    cook = session.get(Cook, cook_id)
    if not cook:
        raise HTTPException(404, "Cook not found")

    items = session.exec(
        select(MenuItem)
        .where(MenuItem.cook_id == cook_id, MenuItem.available == True)  # noqa: E712
        .order_by(MenuItem.name)
    ).all()

    return {
        "cook_id": cook.id,
        "cook_name": cook.display_name,
        "kitchen_name": cook.kitchen_name,
        "items": [
            {"id": i.id, "item_name": i.name, "price": i.price, "cook_id": cook.id}
            for i in items
        ],
    }
