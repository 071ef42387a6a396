"""Payments API

Lookup, query and create endpoints. Parameters declare their wire names with
FastAPI aliases and their rules with core.validation constraints; bind and
validation failures are answered with problem documents by the error handlers.

Static paths are declared before ``/{paymentId}`` so they are matched first.
"""
from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from core.errors import raise_result
from core.logging import api_logger
from core.security import Roles, require_roles
from core.validation import (
    FieldValidationError,
    Range,
    Required,
    StringAsEnum,
    StringAsIsoDate,
    ValidatedRoute,
    parse_enum_token,
    parse_iso_date,
)
from engines.payments import PaymentEngine, get_payment_engine
from models.payment import (
    GetPaymentsRequest,
    PaymentResponse,
    PaymentStatus,
    PostPaymentRequest,
    PostPaymentResponse,
)

router = APIRouter(prefix="/payments", tags=["Payment"], route_class=ValidatedRoute)

log = api_logger()

READER = [Depends(require_roles(Roles.READER))]
WRITER = [Depends(require_roles(Roles.WRITER))]

FORBIDDEN_PAYMENT_ID = 666


@router.get("/query", response_model=list[PaymentResponse], dependencies=READER)
async def query_payments(
    *,
    payment_id: Annotated[int | None, Query(alias="paymentId"), Range(1, 1000)] = None,
    value_date_string: Annotated[str | None, Query(alias="valueDateString"), StringAsIsoDate()] = None,
    status: Annotated[str | None, Query(), StringAsEnum(PaymentStatus)] = None,
    reference_id: Annotated[UUID | None, Query(alias="referenceId")] = None,
    value_date: Annotated[date | None, Query(alias="valueDate")] = None,
    status_enum_nullable: Annotated[PaymentStatus | None, Query(alias="statusEnumNullable")] = None,
    status_enum: Annotated[PaymentStatus, Query(alias="statusEnum")],
    custom_status: Annotated[PaymentStatus, Query(alias="custom-status")],
    engine: PaymentEngine = Depends(get_payment_engine),
):
    """Query payments by id, reference, value date and status."""
    log.debug("payments_query", status_enum=status_enum.value, custom_status=custom_status.value)
    return engine.query(
        payment_id=payment_id,
        reference_id=reference_id,
        value_date=value_date or (parse_iso_date(value_date_string) if value_date_string else None),
        status=parse_enum_token(PaymentStatus, status) or status_enum_nullable,
    )


@router.get("/query-param", response_model=list[PaymentResponse], dependencies=READER)
async def query_payments_by_model(
    filters: Annotated[GetPaymentsRequest, Query()],
    engine: PaymentEngine = Depends(get_payment_engine),
):
    """Query payments using a query-string model."""
    return engine.query(
        payment_id=filters.payment_id,
        value_date=parse_iso_date(filters.value_date) if filters.value_date else None,
        status=filters.status,
    )


@router.get("/by-reference/{referenceId}", response_model=PaymentResponse)
async def get_payment_by_reference(
    reference_id: Annotated[UUID, Path(alias="referenceId")],
    engine: PaymentEngine = Depends(get_payment_engine),
):
    result = engine.get_by_reference(reference_id)
    raise_result(result)
    return result.unwrap()


@router.get("/by-date/{date}", response_model=list[PaymentResponse])
async def get_payments_by_date(
    value_date: Annotated[date, Path(alias="date")],
    engine: PaymentEngine = Depends(get_payment_engine),
):
    return engine.list_by_date(value_date)


@router.post("", response_model=PostPaymentResponse, dependencies=WRITER)
async def create_payment(
    payment: PostPaymentRequest,
    engine: PaymentEngine = Depends(get_payment_engine),
):
    """Accept a new payment."""
    result = engine.create(payment)
    raise_result(result)
    return result.unwrap()


@router.get("/{paymentId}", response_model=PaymentResponse)
async def get_payment(
    payment_id: Annotated[int, Path(alias="paymentId"), Required(), Range(1, 1000)],
    engine: PaymentEngine = Depends(get_payment_engine),
):
    """Get a payment by id."""
    if payment_id == FORBIDDEN_PAYMENT_ID:
        raise FieldValidationError({"payment_id": [f"Payment ID cannot be {FORBIDDEN_PAYMENT_ID}"]})

    result = engine.get_payment(payment_id)
    raise_result(result)
    return result.unwrap()
