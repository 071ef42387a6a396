"""Payment Engine

In-memory stand-in for the payment backend. Lookups return Result types so
the API layer decides how failures surface.
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from core.errors import AppError, Ok, Result, not_found
from core.logging import engine_logger
from models.payment import PaymentResponse, PaymentStatus, PostPaymentRequest, PostPaymentResponse

log = engine_logger()

SAMPLE_REFERENCE_ID = UUID("3fa85f64-5717-4562-b3fc-2c963f66afa6")
SAMPLE_VALUE_DATE = date(2025, 1, 1)


def _sample_payments() -> dict[int, PaymentResponse]:
    payment = PaymentResponse(
        id=1,
        status=PaymentStatus.COMPLETED,
        reference_id=SAMPLE_REFERENCE_ID,
        value_date=SAMPLE_VALUE_DATE,
        amount=Decimal("25.00"),
        currency="USD",
        timestamp=datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc),
    )
    return {payment.id: payment}


class PaymentEngine:
    """Fake payment store keyed by payment id."""

    __slots__ = ("_payments",)

    def __init__(self, payments: dict[int, PaymentResponse] | None = None):
        self._payments = dict(payments) if payments is not None else _sample_payments()

    def get_payment(self, payment_id: int) -> Result[PaymentResponse, AppError]:
        payment = self._payments.get(payment_id)
        if payment is None:
            return not_found("Payment", payment_id, origin="payments")
        return Ok(payment)

    def get_by_reference(self, reference_id: UUID) -> Result[PaymentResponse, AppError]:
        for payment in self._payments.values():
            if payment.reference_id == reference_id:
                return Ok(payment)
        return not_found("Payment", reference_id, origin="payments")

    def list_by_date(self, value_date: date) -> list[PaymentResponse]:
        return [p for p in self._payments.values() if p.value_date == value_date]

    def query(
        self,
        payment_id: int | None = None,
        reference_id: UUID | None = None,
        value_date: date | None = None,
        status: PaymentStatus | None = None,
    ) -> list[PaymentResponse]:
        """Payments matching every given filter; None filters are ignored."""
        matches = []
        for payment in self._payments.values():
            if payment_id is not None and payment.id != payment_id:
                continue
            if reference_id is not None and payment.reference_id != reference_id:
                continue
            if value_date is not None and payment.value_date != value_date:
                continue
            if status is not None and payment.status is not status:
                continue
            matches.append(payment)
        return matches

    def create(self, request: PostPaymentRequest) -> Result[PostPaymentResponse, AppError]:
        payment_id = uuid4()
        log.info(
            "payment_accepted",
            payment_id=str(payment_id),
            amount=str(request.amount),
            currency=request.currency,
            value_date=str(request.value_date),
        )
        return Ok(PostPaymentResponse(payment_id=payment_id))


def get_payment_engine() -> PaymentEngine:
    return _engine


_engine = PaymentEngine()
