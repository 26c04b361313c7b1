import re
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from dabba.models.user import User
from dabba.schemas.checkout_schemas import CartLine
from dabba.services.errors import (
    EmptyCart,
    IncompleteProfile,
    InvalidCatalogReference,
    MixedCookCart,
    NotAuthenticated,
)
from dabba.utils.token import AuthSession

CANONICAL_ID = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

PROFILE_FIELDS = ("first_name", "last_name", "phone")
ADDRESS_FIELDS = ("street", "city", "state", "pincode")


@dataclass(frozen=True)
class ValidatedLine:
    catalog_item_id: uuid.UUID
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class ValidatedCheckout:
    user_id: uuid.UUID
    cook_id: uuid.UUID
    customer_name: str
    email: str
    phone: str
    address: dict = field(default_factory=dict)
    lines: Tuple[ValidatedLine, ...] = ()


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def missing_profile_fields(profile: Optional[User]) -> List[str]:
    if profile is None:
        return list(PROFILE_FIELDS) + [f"address.{name}" for name in ADDRESS_FIELDS]

    missing = [name for name in PROFILE_FIELDS if _blank(getattr(profile, name, None))]
    address = profile.address or {}
    missing += [f"address.{name}" for name in ADDRESS_FIELDS if _blank(address.get(name))]
    return missing


def is_canonical_id(value) -> bool:
    return isinstance(value, str) and bool(CANONICAL_ID.match(value.strip()))


def validate_checkout(
    auth: Optional[AuthSession],
    profile: Optional[User],
    cart: Sequence[CartLine],
) -> ValidatedCheckout:
    """
    Gate a checkout before anything is written.

    Checks run in a fixed order (session, profile, cart size, item ids,
    single cook) so the caller always gets the most actionable failure.
    """
    if auth is None:
        raise NotAuthenticated()

    missing = missing_profile_fields(profile)
    if missing:
        raise IncompleteProfile(missing)

    if not cart:
        raise EmptyCart()

    invalid = [line.catalog_item_id for line in cart if not is_canonical_id(line.catalog_item_id)]
    if invalid:
        raise InvalidCatalogReference(f"Invalid menu items in cart: {', '.join(map(repr, invalid))}")

    cook_ids = {line.cook_id for line in cart}
    if len(cook_ids) > 1:
        raise MixedCookCart()

    address = {name: str(profile.address.get(name, "")).strip() for name in ADDRESS_FIELDS}

    return ValidatedCheckout(
        user_id=auth.user_id,
        cook_id=cart[0].cook_id,
        customer_name=f"{profile.first_name} {profile.last_name}".strip(),
        email=profile.email or auth.email,
        phone=profile.phone.strip(),
        address=address,
        lines=tuple(
            ValidatedLine(
                catalog_item_id=uuid.UUID(line.catalog_item_id.strip()),
                quantity=line.quantity,
                unit_price=line.unit_price,
            )
            for line in cart
        ),
    )
