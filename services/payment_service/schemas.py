from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from services.order_service.schemas import OrderResponse


class PaymentCreate(BaseModel):
    # No amount field: the charge is always the order's stored total
    order_id: Optional[int] = None
    payment_method: Optional[str] = None


class PaymentResponse(BaseModel):
    id: int
    order_id: int
    payment_method: str
    amount: Decimal
    status: str
    transaction_id: Optional[str]
    payment_date: datetime

    class Config:
        from_attributes = True


class PaymentDetailResponse(PaymentResponse):
    order: OrderResponse


class PaymentResult(BaseModel):
    payment: PaymentResponse
    order: OrderResponse

    class Config:
        from_attributes = True
