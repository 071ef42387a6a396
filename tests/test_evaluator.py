from datetime import date
from decimal import Decimal

import pytest

from core.validation import (
    Pattern,
    Range,
    Required,
    StringAsEnum,
    StringAsIsoDate,
    StringLength,
    evaluate,
    parse_iso_date,
)
from models.payment import PaymentStatus

AMOUNT = (Required(), Range(1, 100, message="The value must be between 1 and 100.00"))
CURRENCY = (
    Required(),
    StringLength(3, minimum=3, message="Currency must be a 3-letter ISO code."),
    Pattern(r"^[A-Z]{3}$", message="Currency must be an ISO 4217 code (e.g., USD)."),
)


class TestRequired:
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_or_blank(self, value):
        assert evaluate(value, [Required()], "amount") == ["The amount field is required."]

    def test_short_circuits_remaining_constraints(self):
        assert evaluate(None, AMOUNT, "amount") == ["The amount field is required."]
        assert evaluate("", CURRENCY, "currency") == ["The currency field is required."]

    def test_present(self):
        assert evaluate(0, [Required()], "amount") == []


class TestRange:
    @pytest.mark.parametrize("value", [1, 50, 100, Decimal("1.00"), 99.5, "42"])
    def test_in_range(self, value):
        assert evaluate(value, [Range(1, 100)], "amount") == []

    @pytest.mark.parametrize("value", [0, Decimal("0.5"), 100.01, True, "abc", float("nan")])
    def test_out_of_range_or_not_numeric(self, value):
        assert evaluate(value, [Range(1, 100)], "amount") == ["The field amount must be between 1 and 100."]

    def test_none_is_not_checked(self):
        assert evaluate(None, [Range(1, 100)], "amount") == []

    def test_custom_message(self):
        assert evaluate(Decimal("0.5"), AMOUNT, "amount") == ["The value must be between 1 and 100.00"]


class TestStringRules:
    def test_every_failing_rule_is_reported_in_order(self):
        assert evaluate("us", CURRENCY, "currency") == [
            "Currency must be a 3-letter ISO code.",
            "Currency must be an ISO 4217 code (e.g., USD).",
        ]

    def test_pattern_is_a_full_match(self):
        assert evaluate("usd", CURRENCY, "currency") == ["Currency must be an ISO 4217 code (e.g., USD)."]
        assert evaluate("USDX", [Pattern(r"[A-Z]{3}")], "currency") != []

    def test_pattern_passes_empty_string(self):
        assert evaluate("", [Pattern(r"^[A-Z]{3}$")], "currency") == []

    def test_length_rejects_non_strings(self):
        assert evaluate(123, [StringLength(3)], "currency") == [
            "The field currency must be a string with a maximum length of 3."
        ]

    def test_valid(self):
        assert evaluate("USD", CURRENCY, "currency") == []


class TestStringAsEnum:
    @pytest.mark.parametrize("value", ["Pending", "pending", "FINISHED", "completed", "Failed", "", None])
    def test_accepted(self, value):
        assert evaluate(value, [StringAsEnum(PaymentStatus)], "status") == []

    def test_rejected(self):
        assert evaluate("UNKNOWN_STATUS", [StringAsEnum(PaymentStatus)], "status") == [
            "The value 'UNKNOWN_STATUS' is not valid for status."
        ]

    def test_non_string_rejected(self):
        assert evaluate(3, [StringAsEnum(PaymentStatus)], "status") == ["The value '3' is not valid for status."]


class TestStringAsIsoDate:
    @pytest.mark.parametrize("value", ["2024-01-01", "2024-02-29", "2000-02-29", "", None])
    def test_accepted(self, value):
        assert evaluate(value, [StringAsIsoDate()], "valueDateString") == []

    @pytest.mark.parametrize("value", [
        "2024-02-30",
        "2023-02-29",
        "2024-13-01",
        "2024-1-01",
        "01/02/2024",
        "2024-01-01T00:00:00",
        "not-a-date",
    ])
    def test_rejected(self, value):
        assert evaluate(value, [StringAsIsoDate()], "valueDateString") == [
            f"The value '{value}' is not valid for valueDateString."
        ]

    def test_parse(self):
        assert parse_iso_date("2024-02-29") == date(2024, 2, 29)
        assert parse_iso_date("2024-02-30") is None


def test_evaluation_is_repeatable():
    first = evaluate("us", CURRENCY, "currency")
    assert evaluate("us", CURRENCY, "currency") == first
