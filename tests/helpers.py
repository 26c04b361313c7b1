import hashlib
import hmac
import uuid

from sqlmodel import select

from dabba.config import settings
from dabba.models import CookPayment, MenuItem, Order, User
from dabba.schemas.checkout_schemas import CartLine
from dabba.utils.token import create_access_token

COMPLETE_ADDRESS = {
    "street": "12 Hostel Road",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411007",
}


def sign(gateway_order_id: str, payment_id: str, secret: str = None) -> str:
    secret = settings.razorpay_key_secret if secret is None else secret
    return hmac.new(
        secret.encode("utf-8"),
        f"{gateway_order_id}|{payment_id}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def flip_bit(signature: str) -> str:
    """Same signature with the lowest bit of the last hex digit flipped."""
    return signature[:-1] + format(int(signature[-1], 16) ^ 1, "x")


def cart_line(item: MenuItem, quantity: int = 1, unit_price=None) -> CartLine:
    return CartLine(
        catalog_item_id=str(item.id),
        quantity=quantity,
        unit_price=item.price if unit_price is None else unit_price,
        cook_id=item.cook_id,
        item_name=item.name,
    )


def cart_json(item: MenuItem, quantity: int = 1, unit_price=None) -> dict:
    return cart_line(item, quantity, unit_price).model_dump(mode="json")


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


def payables(session, order_id: uuid.UUID = None):
    query = select(CookPayment)
    if order_id is not None:
        query = query.where(CookPayment.order_id == order_id)
    return session.exec(query).all()


def all_orders(session):
    return session.exec(select(Order)).all()


class FakeOrderApi:
    """Stands in for razorpay.Client().order; records every create call."""

    def __init__(self):
        self.calls = []
        self.error = None

    def create(self, data=None, **kwargs):
        if self.error is not None:
            raise self.error
        self.calls.append({"data": data, "options": kwargs})
        return {
            "id": f"order_Test{len(self.calls):010d}",
            "entity": "order",
            "amount": data["amount"],
            "currency": data["currency"],
            "receipt": data["receipt"],
            "notes": data["notes"],
            "status": "created",
        }
