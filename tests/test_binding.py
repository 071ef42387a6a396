from datetime import date, datetime
from typing import Annotated
from uuid import UUID

import pytest
from fastapi import Path, Query

from core.validation import (
    BindFailure,
    EndpointMetadata,
    Range,
    classify,
    friendly_message,
    from_request_errors,
    type_hint_for,
    unwrap_nullable,
)
from models.payment import PaymentStatus


async def lookup(
    payment_id: Annotated[int, Path(alias="paymentId"), Range(1, 1000)],
    reference_id: Annotated[UUID | None, Query(alias="referenceId")] = None,
):
    return None


LOOKUP = EndpointMetadata.from_endpoint(lookup, "/payments/{paymentId}", {"GET"})


class TestClassify:
    def test_malformed_value(self):
        failure = classify('Failed to bind parameter "Int32 paymentId" from "abc".')
        assert failure == BindFailure(logical_name="paymentId", raw_value="abc", type_hint="Int32")

    def test_nullable_type(self):
        failure = classify('Failed to bind parameter "Nullable<Guid> referenceId" from "not-a-guid".')
        assert failure.type_hint == "Nullable<Guid>"
        assert failure.logical_name == "referenceId"
        assert failure.raw_value == "not-a-guid"

    def test_backtick_nullable_type(self):
        failure = classify('Failed to bind parameter "Nullable`1[System.Guid] referenceId" from "x".')
        assert failure.type_hint == "Nullable`1[System.Guid]"
        assert friendly_message(failure) == "Invalid format. Must be a valid GUID."

    def test_required_missing(self):
        failure = classify('Required parameter "PaymentStatus statusEnum" was not provided from query string.')
        assert failure == BindFailure(
            logical_name="statusEnum",
            type_hint="PaymentStatus",
            is_required_missing=True,
        )

    @pytest.mark.parametrize("signal", [None, "", "Something went wrong", "Failed to bind"])
    def test_unrecognised(self, signal):
        assert classify(signal) is None

    @pytest.mark.parametrize("failure", [
        BindFailure(logical_name="paymentId", raw_value="abc", type_hint="Int32"),
        BindFailure(logical_name="referenceId", raw_value="", type_hint="Nullable<Guid>"),
        BindFailure(logical_name="statusEnum", type_hint="PaymentStatus", is_required_missing=True),
    ])
    def test_describe_round_trip(self, failure):
        assert classify(failure.describe()) == failure


class TestFriendlyMessages:
    @pytest.mark.parametrize("hint, expected", [
        ("Nullable<Int32>", "Int32"),
        ("Nullable`1[System.DateOnly]", "System.DateOnly"),
        ("Optional[bool]", "bool"),
        ("int?", "int"),
        ("Guid", "Guid"),
        (None, ""),
    ])
    def test_unwrap_nullable(self, hint, expected):
        assert unwrap_nullable(hint) == expected

    @pytest.mark.parametrize("hint, message", [
        ("Guid", "Invalid format. Must be a valid GUID."),
        ("Nullable<Guid>", "Invalid format. Must be a valid GUID."),
        ("Int32", "Invalid number. Must be an integer."),
        ("Nullable<Int32>", "Invalid number. Must be an integer."),
        ("DateOnly", "Invalid date. Use yyyy-MM-dd."),
        ("Boolean", "Invalid boolean. Use true or false."),
        ("Decimal", "Invalid value."),
        (None, "Invalid value."),
    ])
    def test_table(self, hint, message):
        assert friendly_message(BindFailure("field", raw_value="x", type_hint=hint)) == message

    def test_missing_wins_over_type(self):
        failure = BindFailure("statusEnum", type_hint="Int32", is_required_missing=True)
        assert friendly_message(failure) == "Required parameter is missing."


class TestTypeHints:
    @pytest.mark.parametrize("annotation, expected", [
        (int, "Int32"),
        (bool, "Boolean"),
        (UUID, "Guid"),
        (date, "DateOnly"),
        (datetime, "DateTime"),
        (str, "String"),
        (int | None, "Nullable<Int32>"),
        (Annotated[UUID | None, Query()], "Nullable<Guid>"),
        (PaymentStatus, "PaymentStatus"),
        (None, None),
    ])
    def test_type_hint_for(self, annotation, expected):
        assert type_hint_for(annotation) == expected


class TestFromRequestErrors:
    def test_empty(self):
        assert from_request_errors([]) is None

    def test_without_metadata(self):
        failure = from_request_errors([
            {"type": "int_parsing", "loc": ("path", "paymentId"), "msg": "", "input": "abc"},
        ])
        assert failure == BindFailure(logical_name="paymentId", raw_value="abc", type_hint="Int32")

    def test_missing_value(self):
        failure = from_request_errors([
            {"type": "missing", "loc": ("query", "statusEnum"), "msg": "Field required", "input": None},
        ])
        assert failure.is_required_missing
        assert failure.logical_name == "statusEnum"
        assert failure.raw_value is None

    def test_only_first_error_is_used(self):
        failure = from_request_errors([
            {"type": "missing", "loc": ("query", "statusEnum"), "msg": "", "input": None},
            {"type": "missing", "loc": ("query", "custom-status"), "msg": "", "input": None},
        ])
        assert failure.logical_name == "statusEnum"

    def test_metadata_maps_wire_name_and_type(self):
        failure = from_request_errors(
            [{"type": "uuid_parsing", "loc": ("query", "referenceId"), "msg": "", "input": "not-a-guid"}],
            LOOKUP,
        )
        assert failure == BindFailure(
            logical_name="reference_id",
            raw_value="not-a-guid",
            type_hint="Nullable<Guid>",
        )
        assert friendly_message(failure) == "Invalid format. Must be a valid GUID."
