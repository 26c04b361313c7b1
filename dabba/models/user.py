import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: str = Field(index=True, unique=True)
    password: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    role: str = Field(default="student")  # student | cook
    can_login: bool = Field(default=True)
    profile_image: Optional[str] = None

    # {"street": ..., "city": ..., "state": ..., "pincode": ...}
    address: dict = Field(default_factory=dict, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
