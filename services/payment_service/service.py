"""
Mock payment processor. No money moves; charges are recorded so that the
booking saga can refund them when a later step fails.
"""
import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.constants import DECLINED_TEST_CARD
from shared.errors import InvalidStateError, NotFoundError, PaymentDeclinedError, ValidationError
from .models import Payment
from .repository import PaymentRepository
from .schemas import CardDetails

logger = structlog.get_logger(__name__)


def _digits(value: str) -> str:
    return "".join(ch for ch in value if not ch.isspace())


class PaymentService:
    @staticmethod
    def validate_card(card: CardDetails) -> str:
        number = _digits(card.number)
        if len(number) != 16 or not number.isdigit():
            raise ValidationError(detail="Invalid card details")
        if not card.cvv.isdigit() or not 3 <= len(card.cvv) <= 4:
            raise ValidationError(detail="Invalid card details")
        return number

    @staticmethod
    async def charge(
        db: AsyncSession, payment_handle: str, order_id: str, amount_cents: int, card: CardDetails
    ) -> Payment:
        number = PaymentService.validate_card(card)

        if await PaymentRepository.get_succeeded(db, payment_handle):
            raise InvalidStateError(detail="This payment has already been completed")

        declined = number == DECLINED_TEST_CARD
        payment = Payment(
            payment_id=payment_handle,
            order_id=order_id,
            amount_cents=amount_cents,
            status="failed" if declined else "succeeded",
            transaction_id=None if declined else str(uuid.uuid4()),
        )
        payment = await PaymentRepository.create_payment(db, payment)

        if declined:
            logger.warning("payment_declined", payment_id=payment_handle, order_id=order_id)
            raise PaymentDeclinedError()

        logger.info(
            "payment_succeeded",
            payment_id=payment_handle,
            order_id=order_id,
            amount_cents=amount_cents,
            transaction_id=payment.transaction_id,
        )
        return payment

    @staticmethod
    async def refund(db: AsyncSession, payment_handle: str) -> Payment:
        payment = await PaymentRepository.get_succeeded(db, payment_handle)
        if not payment:
            raise NotFoundError(detail="No completed payment to refund")

        payment.status = "refunded"
        payment = await PaymentRepository.update_payment(db, payment)
        # A real gateway refund call would go here
        logger.info("payment_refunded", payment_id=payment_handle, transaction_id=payment.transaction_id)
        return payment

    @staticmethod
    async def list_payments(db: AsyncSession, payment_handle: str) -> list[Payment]:
        return await PaymentRepository.list_for_handle(db, payment_handle)
