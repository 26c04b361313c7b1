import uuid
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from sqlmodel import SQLModel, Field, Relationship

if TYPE_CHECKING:
    from dabba.models.order import Order


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    order_id: uuid.UUID = Field(foreign_key="orders.id", ondelete="CASCADE", index=True)
    menu_id: uuid.UUID = Field(foreign_key="menu_items.id", index=True)

    quantity: int
    price_at_time: Decimal = Field(max_digits=10, decimal_places=2)

    order: Optional["Order"] = Relationship(back_populates="items")
