from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import Caller, require_admin

from .dependencies import get_current_caller
from .schemas import CustomerCreate, CustomerResponse, CustomerUpdate
from .service import CustomerService

router = APIRouter(prefix="/customers", tags=["Customers"])
public_router = APIRouter(prefix="/customers")

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "customer", "status": "running"}


@router.get("/", response_model=list[CustomerResponse], dependencies=[Depends(require_admin)])
async def list_customers(db: AsyncSession = Depends(get_db)):
    return await CustomerService.list_customers(db)


@router.get("/me", response_model=CustomerResponse)
async def get_my_profile(
    caller: Caller = Depends(get_current_caller), db: AsyncSession = Depends(get_db)
):
    return await CustomerService.get_my_profile(db, caller)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    return await CustomerService.get_customer(db, caller, customer_id)


@router.post("/", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    payload: CustomerCreate,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    return await CustomerService.create_customer(db, caller, payload)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    return await CustomerService.update_customer(db, caller, customer_id, payload)


@router.delete("/{customer_id}", dependencies=[Depends(require_admin)])
async def delete_customer(customer_id: int, db: AsyncSession = Depends(get_db)):
    await CustomerService.delete_customer(db, customer_id)
    return {"message": "Customer deleted"}
