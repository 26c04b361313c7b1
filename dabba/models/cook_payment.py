import uuid
from datetime import datetime
from decimal import Decimal

from sqlmodel import SQLModel, Field

from dabba.constants import order_status


class CookPayment(SQLModel, table=True):
    """Money owed to a cook for one order, pending later disbursement."""

    __tablename__ = "cook_payments"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    cook_id: uuid.UUID = Field(index=True)
    # one payable per order, retried verifications rely on this
    order_id: uuid.UUID = Field(foreign_key="orders.id", unique=True)

    amount: Decimal = Field(max_digits=10, decimal_places=2)
    status: str = Field(default=order_status.PAYABLE_PENDING)  # pending | completed
    created_at: datetime = Field(default_factory=datetime.utcnow)
