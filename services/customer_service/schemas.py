from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CustomerCreate(BaseModel):
    # Only admins may create a profile on behalf of another user
    user_id: Optional[int] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None


class CustomerUpdate(BaseModel):
    phone_number: Optional[str] = None
    address: Optional[str] = None


class CustomerResponse(BaseModel):
    id: int
    user_id: int
    phone_number: Optional[str]
    address: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
