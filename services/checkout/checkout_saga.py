"""
Booking saga: create order -> charge card -> confirm payment.

confirm_payment is the step that can lose a capacity race. When it does,
the charge is refunded and the pending order is cancelled, so a losing
order never stays pending with money taken.

A step that overruns its deadline is compensated too, since it may have
landed. Compensations therefore tolerate having nothing to undo.
"""
import structlog

from shared.config.constants import STEP_RETRIES, STEP_TIMEOUT_SECONDS, price_cents
from shared.errors import CapacityExceededError, InvalidStateError, NotFoundError
from services.order_service.repository import OrderRepository
from services.order_service.service import OrderService
from services.payment_service.service import PaymentService
from .saga import SagaOrchestrator, StepTimeoutError

logger = structlog.get_logger(__name__)

# --- ACTIONS ---

async def create_order(ctx: dict):
    created = await OrderService.create_order(ctx["db"], ctx["identity"], ctx["booking"])
    ctx["order_id"] = created.order_id
    ctx["payment_handle"] = created.payment_handle
    ctx["amount"] = created.amount

async def load_order(ctx: dict):
    order = await OrderService.get_order_for_customer(ctx["db"], ctx["order_id"], ctx["identity"])
    if order.status != "pending":
        raise InvalidStateError(detail=f"Order is already {order.status}")
    ctx["payment_handle"] = order.payment_id
    ctx["amount"] = price_cents(order.quantity)

async def charge_payment(ctx: dict):
    payment = await PaymentService.charge(
        ctx["db"], ctx["payment_handle"], ctx["order_id"], ctx["amount"], ctx["card"]
    )
    ctx["transaction_id"] = payment.transaction_id

async def confirm_payment(ctx: dict):
    ctx["order"] = await OrderService.confirm_payment(ctx["db"], ctx["payment_handle"], ctx["identity"])


# --- COMPENSATIONS (Rollbacks) ---

async def _settle_session(ctx: dict):
    # A step cancelled at its deadline can leave the session mid-transaction
    if isinstance(ctx.get("error"), StepTimeoutError):
        await ctx["db"].rollback()

async def reconcile_confirmation(ctx: dict):
    """A confirmation that timed out may have committed anyway; record whether it did."""
    await _settle_session(ctx)
    order = await OrderRepository.get_order(ctx["db"], ctx["order_id"])
    ctx["confirmed"] = order is not None and order.status == "confirmed"
    if ctx["confirmed"]:
        logger.warning("confirmation_landed_after_timeout", order_id=ctx["order_id"])

async def rollback_order(ctx: dict):
    await _settle_session(ctx)
    order_id = ctx.get("order_id")
    if order_id and not ctx.get("confirmed"):
        await OrderService.cancel_order(ctx["db"], order_id, ctx["identity"])

async def release_unfulfillable_order(ctx: dict):
    # A declined card can be retried; an order whose capacity is gone cannot
    if isinstance(ctx.get("error"), CapacityExceededError):
        await rollback_order(ctx)

async def rollback_payment(ctx: dict):
    await _settle_session(ctx)
    # No transaction id yet when the charge itself timed out
    if ctx.get("payment_handle") and not ctx.get("confirmed"):
        try:
            await PaymentService.refund(ctx["db"], ctx["payment_handle"])
        except NotFoundError:
            logger.warning("refund_skipped", payment_id=ctx["payment_handle"])


# --- BUILDER FACTORIES ---

def _new_saga() -> SagaOrchestrator:
    return SagaOrchestrator(timeout=STEP_TIMEOUT_SECONDS, retries=STEP_RETRIES)

def build_checkout_saga() -> SagaOrchestrator:
    saga = _new_saga()
    saga.add_step("create_order", create_order, rollback_order)
    saga.add_step("charge_payment", charge_payment, rollback_payment)
    saga.add_step("confirm_payment", confirm_payment, reconcile_confirmation)
    return saga

def build_pay_order_saga() -> SagaOrchestrator:
    saga = _new_saga()
    saga.add_step("load_order", load_order, release_unfulfillable_order)
    saga.add_step("charge_payment", charge_payment, rollback_payment)
    saga.add_step("confirm_payment", confirm_payment, reconcile_confirmation)
    return saga
