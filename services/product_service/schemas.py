from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    is_available: bool

    class Config:
        from_attributes = True
