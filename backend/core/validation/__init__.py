"""Parameter Validation and Bind-Failure Translation

Turns every client-input failure into one uniform problem document keyed by
the names the caller actually sent.

Two tiers:
- Structural bind failures (malformed or missing wire values) are classified,
  the failing parameter's name is mapped back to its wire name and a single
  friendly message is returned. Only the first failure is reported.
- Declared constraints (Required, Range, StringLength, Pattern, StringAsEnum,
  StringAsIsoDate) are evaluated by the validation filter after binding and
  before the handler; every failing field is reported.

Usage:
    from typing import Annotated
    from fastapi import APIRouter, Query
    from core.validation import ValidatedRoute, Range, StringAsEnum

    router = APIRouter(route_class=ValidatedRoute)

    @router.get("/query")
    async def query(
        payment_id: Annotated[int | None, Query(alias="paymentId"), Range(1, 1000)] = None,
        status: Annotated[str | None, Query(), StringAsEnum(PaymentStatus)] = None,
    ): ...
"""

from .constraints import (
    ConstraintKind,
    FieldConstraint,
    Required,
    Range,
    StringLength,
    Pattern,
    StringAsEnum,
    StringAsIsoDate,
    allowed_tokens,
    parse_enum_token,
)
from .evaluator import evaluate, parse_iso_date
from .binding import (
    BindFailure,
    classify,
    from_request_errors,
    friendly_message,
    type_hint_for,
    unwrap_nullable,
)
from .naming import resolve_external_name, to_kebab_case
from .metadata import (
    EndpointMetadata,
    ExternalNameBinding,
    ParameterMetadata,
    ParameterSource,
)
from .problem import (
    PROBLEM_MEDIA_TYPE,
    PROBLEM_TITLE,
    ErrorCollection,
    FieldValidationError,
    ValidationProblem,
    assemble,
    raise_validation_problem,
)
from .filter import ValidatedRoute, ValidationFilter
from .registry import EndpointRegistry, metadata_for_request

__all__ = [
    # Constraints
    "ConstraintKind",
    "FieldConstraint",
    "Required",
    "Range",
    "StringLength",
    "Pattern",
    "StringAsEnum",
    "StringAsIsoDate",
    "allowed_tokens",
    "parse_enum_token",
    # Evaluation
    "evaluate",
    "parse_iso_date",
    # Bind failures
    "BindFailure",
    "classify",
    "from_request_errors",
    "friendly_message",
    "type_hint_for",
    "unwrap_nullable",
    # Naming
    "resolve_external_name",
    "to_kebab_case",
    # Metadata
    "EndpointMetadata",
    "ExternalNameBinding",
    "ParameterMetadata",
    "ParameterSource",
    "EndpointRegistry",
    "metadata_for_request",
    # Problems
    "PROBLEM_MEDIA_TYPE",
    "PROBLEM_TITLE",
    "ErrorCollection",
    "FieldValidationError",
    "ValidationProblem",
    "assemble",
    "raise_validation_problem",
    # Routing
    "ValidatedRoute",
    "ValidationFilter",
]
