from dataclasses import dataclass
from typing import Optional

ADMIN_ROLE = "admin"
DEFAULT_ROLE = "user"


@dataclass(frozen=True)
class Caller:
    """Authenticated identity taken from the bearer token."""
    user_id: int
    role: str
    # Filled in once the caller's customer profile has been looked up
    customer_id: Optional[int] = None


def is_admin(caller: Caller) -> bool:
    return caller.role == ADMIN_ROLE


def is_authorized(caller: Caller, owner_customer_id: Optional[int]) -> bool:
    """
    Capability check for customer-owned resources (orders, payments, profiles).
    Admins see everything; everyone else only what belongs to their own profile.
    """
    if is_admin(caller):
        return True
    return caller.customer_id is not None and caller.customer_id == owner_customer_id
