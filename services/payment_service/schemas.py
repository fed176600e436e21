from typing import Optional

from pydantic import BaseModel

from services.order_service.schemas import OrderResponse

class CardDetails(BaseModel):
    number: str
    cvv: str
    expiry: Optional[str] = None
    name: Optional[str] = None

class PaymentResponse(BaseModel):
    id: str
    payment_id: str
    order_id: str
    amount_cents: int
    status: str
    transaction_id: Optional[str]

    class Config:
        from_attributes = True

class PayRequest(BaseModel):
    card: CardDetails

class CheckoutResult(BaseModel):
    order: OrderResponse
    payment_handle: str
    amount: int
    transaction_id: Optional[str]
