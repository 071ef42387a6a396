import dataclasses

import pytest

from core.validation import (
    ConstraintKind,
    Pattern,
    Range,
    Required,
    StringAsEnum,
    StringAsIsoDate,
    StringLength,
    allowed_tokens,
    parse_enum_token,
)
from models.payment import PaymentStatus


class TestAllowedTokens:
    def test_values_then_names_deduplicated(self):
        assert allowed_tokens(PaymentStatus) == ("Pending", "FINISHED", "COMPLETED", "Failed")

    def test_enum_constraint_accepts_any_casing(self):
        constraint = StringAsEnum(PaymentStatus)
        assert constraint.accepts("finished")
        assert constraint.accepts("Completed")
        assert constraint.accepts("PENDING")
        assert not constraint.accepts("UNKNOWN_STATUS")

    def test_enum_constraint_rejects_padded_tokens(self):
        constraint = StringAsEnum(PaymentStatus)
        assert not constraint.accepts(" Pending")
        assert not constraint.accepts("FINISHED ")
        assert parse_enum_token(PaymentStatus, " Pending") is PaymentStatus.PENDING


class TestParseEnumToken:
    @pytest.mark.parametrize("token, expected", [
        ("Pending", PaymentStatus.PENDING),
        ("pending", PaymentStatus.PENDING),
        ("FINISHED", PaymentStatus.COMPLETED),
        ("completed", PaymentStatus.COMPLETED),
        ("  Failed ", PaymentStatus.FAILED),
    ])
    def test_resolves_names_and_values(self, token, expected):
        assert parse_enum_token(PaymentStatus, token) is expected

    @pytest.mark.parametrize("token", ["UNKNOWN_STATUS", "", "   ", None, 1])
    def test_unknown_tokens(self, token):
        assert parse_enum_token(PaymentStatus, token) is None

    def test_enum_accepts_member_names(self):
        assert PaymentStatus("completed") is PaymentStatus.COMPLETED


class TestMessages:
    def test_required_default(self):
        assert Required().format_message("amount") == "The amount field is required."

    def test_range_default(self):
        assert Range(1, 1000).format_message("paymentId", 0) == "The field paymentId must be between 1 and 1000."

    def test_string_length_defaults(self):
        assert StringLength(10).format_message("currency") == (
            "The field currency must be a string with a maximum length of 10."
        )
        assert StringLength(3, minimum=2).format_message("currency") == (
            "The field currency must be a string with a minimum length of 2 and a maximum length of 3."
        )

    def test_pattern_default(self):
        assert Pattern(r"^[A-Z]{3}$").format_message("currency") == (
            "The field currency must match the regular expression '^[A-Z]{3}$'."
        )

    def test_value_templates(self):
        assert StringAsEnum(PaymentStatus).format_message("status", "X") == "The value 'X' is not valid for status."
        assert StringAsIsoDate().format_message("valueDateString", "2024-13-01") == (
            "The value '2024-13-01' is not valid for valueDateString."
        )

    def test_unknown_placeholder_keeps_template(self):
        assert Required(message="Missing {nope}").format_message("amount") == "Missing {nope}"


class TestDeclarations:
    def test_constraints_are_immutable(self):
        constraint = Range(1, 100)
        with pytest.raises(dataclasses.FrozenInstanceError):
            constraint.minimum = 5

    def test_kinds(self):
        assert Required().kind is ConstraintKind.REQUIRED
        assert StringAsEnum(PaymentStatus).kind is ConstraintKind.ENUM_MEMBERSHIP
        assert StringAsIsoDate().kind is ConstraintKind.ISO_DATE

    def test_describe(self):
        assert Range(1, 100).describe() == {"kind": "range", "minimum": 1, "maximum": 100}
        assert StringAsEnum(PaymentStatus).describe() == {
            "kind": "enum_membership",
            "enum": "PaymentStatus",
            "allowed": ["Pending", "FINISHED", "COMPLETED", "Failed"],
        }
