from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.customer_service.dependencies import get_current_caller
from shared.config.database import get_db
from shared.config.settings import PAYMENT_RATE_LIMIT
from shared.security import Caller, limiter, require_admin

from .gateway import PaymentGateway, get_payment_gateway
from .schemas import PaymentCreate, PaymentDetailResponse, PaymentResponse, PaymentResult
from .service import PaymentService

# Payments are immutable: no update or delete routes
router = APIRouter(prefix="/payments", tags=["Payments"])
public_router = APIRouter(prefix="/payments")

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "payment", "status": "running"}


@router.post("/", response_model=PaymentResult, status_code=status.HTTP_201_CREATED)
@limiter.limit(PAYMENT_RATE_LIMIT)
async def process_payment(
    request: Request,
    payment: PaymentCreate,
    caller: Caller = Depends(get_current_caller),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_db),
):
    settlement = await PaymentService.settle_payment(db, caller, payment, gateway)
    return PaymentResult.model_validate(settlement)


@router.get("/", response_model=list[PaymentResponse], dependencies=[Depends(require_admin)])
async def list_payments(db: AsyncSession = Depends(get_db)):
    return await PaymentService.list_payments(db)


@router.get("/{payment_id}", response_model=PaymentDetailResponse)
async def get_payment(
    payment_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    return await PaymentService.get_payment(db, caller, payment_id)
