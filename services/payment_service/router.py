from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import Identity, get_current_user
from services.checkout.service import CheckoutService
from services.order_service.service import OrderService

from .schemas import CheckoutResult, PayRequest, PaymentResponse
from .service import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/orders/{order_id}", response_model=CheckoutResult)
async def pay_order(
    order_id: str,
    payload: PayRequest,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CheckoutService.pay_order(db, identity, order_id, payload.card)


@router.get("/orders/{order_id}", response_model=list[PaymentResponse])
async def list_payments(
    order_id: str,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService.get_order_for_customer(db, order_id, identity)
    return await PaymentService.list_payments(db, order.payment_id)
