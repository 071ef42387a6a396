"""Payment Models

Pydantic request/response schemas for the payments endpoints. Requests carry
their declared constraints as Annotated metadata; the validation filter
evaluates them before the handler runs.
"""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.validation import (
    Pattern,
    Range,
    Required,
    StringAsIsoDate,
    StringLength,
    parse_enum_token,
    parse_iso_date,
)


class PaymentStatus(str, Enum):
    """Lifecycle status. Completed payments are exposed as ``FINISHED``."""
    PENDING = "Pending"
    COMPLETED = "FINISHED"
    FAILED = "Failed"

    @classmethod
    def _missing_(cls, value):
        # Member names are accepted too, in any casing
        return parse_enum_token(cls, value)


class PaymentResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    status: PaymentStatus
    reference_id: UUID
    value_date: date
    amount: Decimal
    currency: str
    timestamp: datetime


class PostPaymentRequest(BaseModel):
    """Body of POST /payments."""
    model_config = ConfigDict(populate_by_name=True)

    amount: Annotated[
        Decimal | None,
        Required(),
        Range(1, 100, message="The value must be between 1 and 100.00"),
    ] = None
    currency: Annotated[
        str | None,
        Required(),
        StringLength(3, minimum=3, message="Currency must be a 3-letter ISO code."),
        Pattern(r"^[A-Z]{3}$", message="Currency must be an ISO 4217 code (e.g., USD)."),
    ] = None
    raw_value_date: Annotated[
        str | None,
        Field(alias="value-date"),
        Required(),
        StringAsIsoDate(),
    ] = None

    @property
    def value_date(self) -> date | None:
        return parse_iso_date(self.raw_value_date) if self.raw_value_date else None


class PostPaymentResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    payment_id: UUID


class GetPaymentsRequest(BaseModel):
    """Query model of GET /payments/query-param."""
    model_config = ConfigDict(populate_by_name=True)

    payment_id: Annotated[int | None, Field(alias="payment-id"), Range(1, 1000)] = None
    value_date: Annotated[str | None, Field(alias="value-date"), StringAsIsoDate()] = None
    status: PaymentStatus | None = None
