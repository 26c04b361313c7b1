import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Column, JSON, UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship

from dabba.constants import order_status
from dabba.models.order_item import OrderItem


class Order(SQLModel, table=True):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("user_id", "idempotency_key", name="uq_orders_user_idempotency_key"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    cook_id: uuid.UUID = Field(foreign_key="cooks.id", index=True)

    status: str = Field(default=order_status.PENDING)
    total: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)

    payment_method: str = Field(default=order_status.CASH)
    payment_status: str = Field(default=order_status.PAYMENT_PENDING)
    payment_id: Optional[str] = Field(default=None, index=True)
    gateway_order_id: Optional[str] = Field(default=None, index=True)
    idempotency_key: Optional[str] = Field(default=None, max_length=64)

    # snapshot of the customer's address at order time
    delivery_address: dict = Field(default_factory=dict, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
