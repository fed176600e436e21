from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.constants import CHECKOUT_RATE_LIMIT
from shared.config.database import get_db
from shared.security import Identity, get_current_user, limiter
from services.payment_service.schemas import CheckoutResult
from .schemas import CheckoutRequest
from .service import CheckoutService

router = APIRouter(tags=["Checkout"])


@router.post("/checkout", response_model=CheckoutResult, status_code=status.HTTP_201_CREATED)
@limiter.limit(CHECKOUT_RATE_LIMIT)
async def checkout(
    request: Request,                         # REQUIRED: slowapi needs this to check IP/Headers
    payload: CheckoutRequest,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CheckoutService.checkout(db, identity, payload)
