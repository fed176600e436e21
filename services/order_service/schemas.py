from datetime import datetime
from typing import Optional

from pydantic import BaseModel, computed_field

from shared.config.constants import price_cents


class OrderCreate(BaseModel):
    schedule_id: str
    quantity: int
    description: str
    special_instructions: Optional[str] = None


class OrderCreated(BaseModel):
    order_id: str
    payment_handle: str
    amount: int # cents


class PaymentConfirm(BaseModel):
    payment_handle: str


class StatusUpdate(BaseModel):
    status: str


class OrderResponse(BaseModel):
    id: str
    customer_id: str
    schedule_id: str
    quantity: int
    description: Optional[str]
    special_instructions: Optional[str]
    payment_id: Optional[str]
    status: str
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def total_cents(self) -> int:
        return price_cents(self.quantity)

    class Config:
        from_attributes = True
