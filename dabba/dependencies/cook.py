from fastapi import Depends, HTTPException
from sqlmodel import Session, select

from dabba.database import get_session
from dabba.models.cook import Cook
from dabba.models.user import User
from dabba.utils.token import get_current_user


def require_cook(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> Cook:
    if current_user.role != "cook":
        raise HTTPException(status_code=403, detail="Cook access required")

    cook = session.exec(select(Cook).where(Cook.user_id == current_user.id)).first()
    if not cook:
        raise HTTPException(status_code=404, detail="Register your kitchen first")
    return cook
