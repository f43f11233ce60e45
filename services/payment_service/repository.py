from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Payment

class PaymentRepository:
    """Create and read only."""

    @staticmethod
    async def add_payment(db: AsyncSession, payment: Payment) -> Payment:
        db.add(payment)
        await db.flush()
        return payment

    @staticmethod
    async def get_payment(db: AsyncSession, payment_id: int) -> Optional[Payment]:
        result = await db.execute(select(Payment).where(Payment.id == payment_id))
        return result.scalars().first()

    @staticmethod
    async def list_payments(db: AsyncSession) -> Sequence[Payment]:
        result = await db.execute(select(Payment).order_by(Payment.created_at.desc(), Payment.id.desc()))
        return result.scalars().all()

