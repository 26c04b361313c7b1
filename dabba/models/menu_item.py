import uuid
from datetime import datetime
from decimal import Decimal

from sqlmodel import SQLModel, Field


class MenuItem(SQLModel, table=True):
    __tablename__ = "menu_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    cook_id: uuid.UUID = Field(foreign_key="cooks.id", index=True)
    name: str
    price: Decimal = Field(max_digits=10, decimal_places=2)
    available: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
