from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.customer_service.dependencies import get_current_caller
from shared.config.database import get_db
from shared.config.settings import ORDER_RATE_LIMIT
from shared.security import Caller, limiter, require_admin

from .schemas import OrderCreate, OrderDetailResponse, OrderResponse, OrderStatusUpdate
from .service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])
public_router = APIRouter(prefix="/orders")

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "order", "status": "running"}


@router.get("/", response_model=list[OrderResponse], dependencies=[Depends(require_admin)])
async def list_orders(db: AsyncSession = Depends(get_db)):
    return await OrderService.list_orders(db)


# Declared before /{order_id} so "me" is not parsed as an id
@router.get("/me", response_model=list[OrderResponse])
async def list_my_orders(
    caller: Caller = Depends(get_current_caller), db: AsyncSession = Depends(get_db)
):
    return await OrderService.list_my_orders(db, caller)


@router.post("/", response_model=OrderDetailResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(ORDER_RATE_LIMIT)
async def create_order(
    request: Request,
    order: OrderCreate,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.place_order(db, caller, order)


@router.get("/{order_id}", response_model=OrderDetailResponse)
async def get_order(
    order_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.get_order(db, caller, order_id)


@router.patch(
    "/{order_id}",
    response_model=OrderDetailResponse,
    dependencies=[Depends(require_admin)],
)
async def update_order_status(
    order_id: int, payload: OrderStatusUpdate, db: AsyncSession = Depends(get_db)
):
    return await OrderService.update_status(db, order_id, payload.status)


@router.delete("/{order_id}", dependencies=[Depends(require_admin)])
async def delete_order(order_id: int, db: AsyncSession = Depends(get_db)):
    await OrderService.delete_order(db, order_id)
    return {"message": "Order deleted"}
