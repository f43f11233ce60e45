from typing import Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Product

class ProductRepository:

    @staticmethod
    async def get_all_products(db: AsyncSession, available_only: bool = False) -> Sequence[Product]:
        stmt = select(Product).order_by(Product.id)
        if available_only:
            stmt = stmt.where(Product.is_available.is_(True))
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int) -> Optional[Product]:
        result = await db.execute(select(Product).where(Product.id == product_id))
        return result.scalars().first()

    @staticmethod
    async def get_products_by_ids(db: AsyncSession, product_ids: Iterable[int]) -> Sequence[Product]:
        """One query; ids with no row are simply absent from the result."""
        ids = set(product_ids)
        if not ids:
            return []
        result = await db.execute(select(Product).where(Product.id.in_(ids)))
        return result.scalars().all()
