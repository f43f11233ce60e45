from dataclasses import replace

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import Caller, get_current_user

from .repository import CustomerRepository


async def find_customer_profile(db: AsyncSession, user_id: int):
    """Returns the customer id owned by the user, or None."""
    return await CustomerRepository.find_customer_id(db, user_id)


async def get_current_caller(
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Caller:
    """Authenticated caller completed with their customer profile id."""
    customer_id = await find_customer_profile(db, caller.user_id)
    return replace(caller, customer_id=customer_id)
