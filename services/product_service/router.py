from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db

from .schemas import ProductResponse
from .service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])
public_router = APIRouter(prefix="/products")

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "product", "status": "running"}


@router.get("/", response_model=list[ProductResponse])
async def list_products(
    available_only: bool = Query(default=False),
    db: AsyncSession = Depends(get_db)
):
    return await ProductService.list_products(db, available_only)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db)
):
    return await ProductService.get_product_by_id(db, product_id)
