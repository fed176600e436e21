from sqlalchemy.ext.asyncio import AsyncSession

from shared.security import Identity
from services.order_service.schemas import OrderCreate, OrderResponse
from services.payment_service.schemas import CardDetails, CheckoutResult
from .checkout_saga import build_checkout_saga, build_pay_order_saga
from .schemas import CheckoutRequest


def _result(ctx: dict) -> CheckoutResult:
    return CheckoutResult(
        order=OrderResponse.model_validate(ctx["order"]),
        payment_handle=ctx["payment_handle"],
        amount=ctx["amount"],
        transaction_id=ctx.get("transaction_id"),
    )


class CheckoutService:
    @staticmethod
    async def checkout(db: AsyncSession, identity: Identity, data: CheckoutRequest) -> CheckoutResult:
        """Book, pay and confirm in one go; any failure is compensated."""
        ctx = {
            "db": db,
            "identity": identity,
            "booking": OrderCreate(
                schedule_id=data.schedule_id,
                quantity=data.quantity,
                description=data.description,
                special_instructions=data.special_instructions,
            ),
            "card": data.card,
        }
        await build_checkout_saga().execute(ctx)
        return _result(ctx)

    @staticmethod
    async def pay_order(db: AsyncSession, identity: Identity, order_id: str, card: CardDetails) -> CheckoutResult:
        """Pay for an order created earlier with create_order."""
        ctx = {"db": db, "identity": identity, "order_id": order_id, "card": card}
        await build_pay_order_saga().execute(ctx)
        return _result(ctx)
