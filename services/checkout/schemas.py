from typing import Optional

from pydantic import BaseModel

from services.payment_service.schemas import CardDetails


class CheckoutRequest(BaseModel):
    schedule_id: str
    quantity: int
    description: str
    special_instructions: Optional[str] = None
    card: CardDetails
