from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from dabba.database import get_session
from dabba.models.user import User
from dabba.schemas.user_schemas import Token, UserLogin, UserRegister, UserResponse
from dabba.utils.hash import hash_password, verify_password
from dabba.utils.token import create_access_token

router = APIRouter()


@router.post("/register", response_model=UserResponse)
def register_user(payload: UserRegister, session: Session = Depends(get_session)):
    email = payload.email.lower()
    existing_user = session.exec(select(User).where(User.email == email)).first()
    if existing_user:
        raise HTTPException(400, "Email already registered")

    user = User(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=email,
        password=hash_password(payload.password),
        role=payload.role,
    )

    session.add(user)
    session.commit()
    session.refresh(user)

    return UserResponse(
        message="Registration successful.",
        user_id=user.id,
        email=user.email,
        role=user.role,
    )


@router.post("/login", response_model=Token)
def login(payload: UserLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == payload.email.lower())).first()

    if not user or not verify_password(payload.password, user.password):
        raise HTTPException(401, "Invalid email or password")

    if not user.can_login:
        raise HTTPException(403, "User account is disabled")

    token = create_access_token({"sub": str(user.id)})
    return Token(access_token=token, token_type="bearer")
