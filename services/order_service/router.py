from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import Identity, get_current_user, verify_internal_api_key
from .schemas import OrderCreate, OrderCreated, OrderResponse, PaymentConfirm, StatusUpdate
from .service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("/", response_model=OrderCreated, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.create_order(db, identity, payload)


@router.get("/", response_model=list[OrderResponse])
async def list_orders(
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.list_orders_for_customer(db, identity)


# Payment processor callback; service-to-service only
@router.post(
    "/confirm",
    response_model=OrderResponse,
    dependencies=[Depends(verify_internal_api_key)],
)
async def confirm_payment(payload: PaymentConfirm, db: AsyncSession = Depends(get_db)):
    return await OrderService.confirm_payment(db, payload.payment_handle)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.get_order_for_customer(db, order_id, identity)


@router.patch("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.cancel_order(db, order_id, identity)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_status(
    order_id: str,
    payload: StatusUpdate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.update_status(db, order_id, identity, payload.status)
