from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from shared.exceptions import NotFoundError

from .repository import ProductRepository

class ProductService:

    @staticmethod
    async def list_products(db: AsyncSession, available_only: bool = False):
        return await ProductRepository.get_all_products(db, available_only)

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int):
        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    @staticmethod
    async def lookup_products(db: AsyncSession, product_ids: Iterable[int]):
        """
        Catalog lookup used when pricing orders.
        Returns at most one product per requested id with its current price and
        availability; unknown ids are omitted, callers detect them by count.
        """
        return await ProductRepository.get_products_by_ids(db, product_ids)
