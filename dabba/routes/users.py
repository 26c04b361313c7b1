from fastapi import APIRouter, Depends
from sqlmodel import Session

from dabba.database import get_session
from dabba.models.user import User
from dabba.schemas.user_schemas import ProfileUpdate
from dabba.services.cart_validator import missing_profile_fields
from dabba.utils.token import get_current_user

router = APIRouter()


def profile_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": user.phone,
        "role": user.role,
        "profile_image": user.profile_image,
        "address": {
            "street": (user.address or {}).get("street", ""),
            "city": (user.address or {}).get("city", ""),
            "state": (user.address or {}).get("state", ""),
            "pincode": (user.address or {}).get("pincode", ""),
        },
        "created_at": user.created_at,
    }


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    return profile_dict(current_user)


@router.put("/update-profile")
def update_profile(
    data: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    updates = data.model_dump(exclude_unset=True, exclude={"address"})
    for field, value in updates.items():
        setattr(current_user, field, value.strip() if isinstance(value, str) else value)

    if data.address is not None:
        # reassign so the JSON column is marked dirty
        current_user.address = {
            **(current_user.address or {}),
            **{k: v.strip() for k, v in data.address.model_dump().items()},
        }

    session.add(current_user)
    session.commit()
    session.refresh(current_user)

    return {"message": "Profile updated", "user": profile_dict(current_user)}


@router.get("/me/profile-status")
def profile_status(current_user: User = Depends(get_current_user)):
    missing = missing_profile_fields(current_user)
    return {"complete": not missing, "missing": missing}
