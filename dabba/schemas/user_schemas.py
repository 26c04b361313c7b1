import uuid
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator


class AddressSchema(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""


class UserRegister(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: EmailStr
    # bcrypt only looks at the first 72 bytes
    password: str = Field(min_length=8, max_length=72)
    confirm_password: str
    role: Literal["student", "cook"] = "student"

    @model_validator(mode="after")
    def validate_passwords(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserResponse(BaseModel):
    message: str
    user_id: uuid.UUID
    email: EmailStr
    role: str


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[AddressSchema] = None
    profile_image: Optional[str] = None


class CookRegister(BaseModel):
    kitchen_name: str = Field(min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
