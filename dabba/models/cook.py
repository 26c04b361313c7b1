import uuid
from datetime import datetime

from sqlmodel import SQLModel, Field


class Cook(SQLModel, table=True):
    __tablename__ = "cooks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True, unique=True)
    first_name: str
    last_name: str
    kitchen_name: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
