# billing/models/items.py

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from billing.models.common import Money


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    unit: str = Field(..., min_length=1, max_length=50)


class ItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    unit: Optional[str] = Field(default=None, min_length=1, max_length=50)


class ItemOut(BaseModel):
    id: int
    name: str
    price: Money
    unit: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
