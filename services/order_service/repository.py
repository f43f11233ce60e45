from typing import Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Order, OrderStatus

class OrderRepository:
    """
    Persistence for the Order aggregate (Order + OrderItems).

    Methods that write do not commit: callers wrap them in
    shared.config.database.transaction so a whole use case commits or aborts as one.
    """

    @staticmethod
    async def add_order(db: AsyncSession, order: Order) -> Order:
        db.add(order)
        await db.flush()
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int, refresh: bool = False) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def get_order_for_update(db: AsyncSession, order_id: int) -> Optional[Order]:
        """Loads the order holding its row lock until the surrounding transaction ends."""
        if db.get_bind().dialect.name == "sqlite":
            # SQLite ignores FOR UPDATE; a no-op write takes the database write lock instead
            await db.execute(
                update(Order)
                .where(Order.id == order_id)
                .values(status=Order.status)
                .execution_options(synchronize_session=False)
            )
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def transition_status(
        db: AsyncSession, order_id: int, expected: OrderStatus, new: OrderStatus
    ) -> bool:
        """
        Compare-and-set on the status column.
        Returns False when the order is no longer in the expected status.
        """
        result = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == OrderStatus(expected).value)
            .values(status=OrderStatus(new).value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def list_for_customer(db: AsyncSession, customer_id: int) -> Sequence[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.order_date.desc(), Order.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def list_all(db: AsyncSession) -> Sequence[Order]:
        result = await db.execute(select(Order).order_by(Order.order_date.desc(), Order.id.desc()))
        return result.scalars().all()

    @staticmethod
    async def count_for_customer(db: AsyncSession, customer_id: int) -> int:
        result = await db.execute(
            select(func.count(Order.id)).where(Order.customer_id == customer_id)
        )
        return result.scalar_one()

    @staticmethod
    async def delete_order(db: AsyncSession, order: Order) -> None:
        await db.delete(order)
