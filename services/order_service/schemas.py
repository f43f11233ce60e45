from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from services.product_service.schemas import ProductResponse


class OrderItemCreate(BaseModel):
    # Any price sent by the client is dropped here; lines are priced from the catalog
    product_id: int
    quantity: int


class OrderCreate(BaseModel):
    customer_id: Optional[int] = None
    shipping_address: Optional[str] = None
    customer_notes: Optional[str] = None
    items: Optional[List[OrderItemCreate]] = None


class OrderStatusUpdate(BaseModel):
    status: Optional[str] = None


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    price_per_item: Decimal
    product: Optional[ProductResponse] = None

    class Config:
        from_attributes = True


class OrderPaymentResponse(BaseModel):
    id: int
    payment_method: str
    amount: Decimal
    status: str
    transaction_id: Optional[str]
    payment_date: datetime

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    customer_id: int
    order_date: datetime
    shipping_address: str
    customer_notes: Optional[str]
    total_amount: Decimal
    status: str
    items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True


class OrderDetailResponse(OrderResponse):
    payments: List[OrderPaymentResponse] = []
