from typing import Annotated

import pytest
from fastapi import Query

from core.validation import EndpointMetadata, resolve_external_name, to_kebab_case
from models.payment import GetPaymentsRequest


async def query(
    payment_id: Annotated[int | None, Query(alias="paymentId")] = None,
    custom_status: Annotated[str | None, Query(alias="custom-status")] = None,
    valueDate: str | None = None,
):
    return None


async def query_by_model(filters: Annotated[GetPaymentsRequest, Query()]):
    return None


QUERY = EndpointMetadata.from_endpoint(query, "/payments/query", {"GET"})
QUERY_BY_MODEL = EndpointMetadata.from_endpoint(query_by_model, "/payments/query-param", {"GET"})


@pytest.mark.parametrize("name, expected", [
    ("paymentId", "payment-id"),
    ("PaymentId", "payment-id"),
    ("value_date", "value-date"),
    ("HTTPStatus", "http-status"),
    ("statusEnum2", "status-enum2"),
    ("status", "status"),
    ("", ""),
])
def test_kebab_case(name, expected):
    assert to_kebab_case(name) == expected


class TestResolveExternalName:
    @pytest.mark.parametrize("name", [None, ""])
    def test_empty_names_unchanged(self, name):
        assert resolve_external_name(name, QUERY) == name

    def test_parameter_alias(self):
        assert resolve_external_name("payment_id", QUERY) == "paymentId"
        assert resolve_external_name("CUSTOM_STATUS", QUERY) == "custom-status"

    def test_wire_name_resolves_to_itself(self):
        assert resolve_external_name("paymentId", QUERY) == "paymentId"

    def test_property_alias(self):
        assert resolve_external_name("payment_id", QUERY_BY_MODEL) == "payment-id"
        assert resolve_external_name("value_date", QUERY_BY_MODEL) == "value-date"

    def test_fallback_is_kebab_case(self):
        assert resolve_external_name("valueDate", QUERY) == "value-date"
        assert resolve_external_name("statusEnum") == "status-enum"
