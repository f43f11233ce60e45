from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import transaction

from .models import Customer


class CustomerRepository:

    @staticmethod
    async def save(db: AsyncSession, customer: Customer) -> Customer:
        async with transaction(db):
            db.add(customer)
        await db.refresh(customer)
        return customer

    @staticmethod
    async def get_by_id(db: AsyncSession, customer_id: int) -> Optional[Customer]:
        result = await db.execute(select(Customer).where(Customer.id == customer_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_user_id(db: AsyncSession, user_id: int) -> Optional[Customer]:
        result = await db.execute(select(Customer).where(Customer.user_id == user_id))
        return result.scalars().first()

    @staticmethod
    async def find_customer_id(db: AsyncSession, user_id: int) -> Optional[int]:
        result = await db.execute(select(Customer.id).where(Customer.user_id == user_id))
        return result.scalars().first()

    @staticmethod
    async def list_all(db: AsyncSession) -> Sequence[Customer]:
        result = await db.execute(select(Customer).order_by(Customer.id))
        return result.scalars().all()

    @staticmethod
    async def delete(db: AsyncSession, customer: Customer) -> None:
        async with transaction(db):
            await db.delete(customer)
