from typing import Annotated

import pytest
from fastapi import APIRouter, Depends, Query

from api import payments
from core.validation import (
    EndpointMetadata,
    EndpointRegistry,
    ParameterSource,
    Range,
    StringAsEnum,
    ValidatedRoute,
    ValidationFilter,
)
from engines.payments import get_payment_engine
from models.payment import PaymentStatus, PostPaymentRequest


async def duplicated(
    first: Annotated[int | None, Query(alias="paymentId")] = None,
    second: Annotated[int | None, Query(alias="PAYMENTID")] = None,
):
    return None


async def create(payment: PostPaymentRequest, engine=Depends(get_payment_engine)):
    return None


async def search(
    payment_id: Annotated[int | None, Query(alias="paymentId"), Range(1, 1000)] = None,
    status: Annotated[str | None, Query(), StringAsEnum(PaymentStatus)] = None,
):
    return None


class TestEndpointMetadata:
    def test_duplicate_external_names_rejected(self):
        with pytest.raises(ValueError, match="Duplicate external name"):
            EndpointMetadata.from_endpoint(duplicated, "/dup", {"GET"})

    def test_dependencies_are_not_parameters(self):
        metadata = EndpointMetadata.from_endpoint(create, "/payments", {"POST"})
        assert [p.name for p in metadata.parameters] == ["payment"]

    def test_body_properties(self):
        metadata = EndpointMetadata.from_endpoint(create, "/payments", {"POST"})
        body = metadata.body_parameter()
        assert body.binding.source is ParameterSource.BODY
        assert [p.name for p in body.properties] == ["amount", "currency", "raw_value_date"]
        assert metadata.property_binding("raw_value_date").external_name == "value-date"
        assert metadata.find("value-date").name == "raw_value_date"
        assert len(metadata.find("currency").constraints) == 3

    def test_constraints_and_sources(self):
        metadata = EndpointMetadata.from_endpoint(search, "/payments/query", {"get"})
        payment_id = metadata.find("paymentId")
        assert payment_id.binding.source is ParameterSource.QUERY
        assert payment_id.constraints == (Range(1, 1000),)
        assert metadata.methods == frozenset({"GET"})
        assert metadata.describe()["parameters"][1]["constraints"][0]["kind"] == "enum_membership"


class TestValidationFilter:
    def test_collect_reports_every_failing_field(self):
        validation = ValidationFilter(EndpointMetadata.from_endpoint(search, "/payments/query", {"GET"}))
        errors = validation.collect({"payment_id": 0, "status": "UNKNOWN_STATUS"})
        assert errors.to_dict() == {
            "payment_id": ["The field paymentId must be between 1 and 1000."],
            "status": ["The value 'UNKNOWN_STATUS' is not valid for status."],
        }

    def test_check(self):
        validation = ValidationFilter(EndpointMetadata.from_endpoint(search, "/payments/query", {"GET"}))
        assert validation.check({"payment_id": 5, "status": "finished"}) is None
        problem = validation.check({"payment_id": 5000, "status": None})
        assert problem.errors.to_dict() == {"paymentId": ["The field paymentId must be between 1 and 1000."]}

    def test_composite_properties(self):
        validation = ValidationFilter(EndpointMetadata.from_endpoint(create, "/payments", {"POST"}))
        body = PostPaymentRequest.model_validate({"amount": "0.5", "currency": "USD", "value-date": "2025-01-01"})
        problem = validation.check({"payment": body})
        assert problem.errors.to_dict() == {"amount": ["The value must be between 1 and 100.00"]}


class TestEndpointRegistry:
    def _router(self):
        router = APIRouter(route_class=ValidatedRoute)
        router.add_api_route("/payments/query", search, methods=["GET"])
        return router

    def test_populate_and_find(self):
        registry = EndpointRegistry()
        assert registry.populate(self._router().routes) == 1
        assert registry.find("get", "/payments/query").name == "search"
        assert registry.find("POST", "/payments/query") is None
        assert registry.find("GET", "/payments/other") is None

    def test_frozen_registry_rejects_registration(self):
        registry = EndpointRegistry()
        registry.populate(self._router().routes)
        registry.freeze()
        assert registry.frozen
        with pytest.raises(RuntimeError):
            registry.register(EndpointMetadata.from_endpoint(search, "/x", {"GET"}))
        assert registry.populate(self._router().routes) == 1

    def test_payment_routes(self):
        registry = EndpointRegistry()
        registry.populate(payments.router.routes)
        metadata = registry.find("GET", "/payments/42")
        assert metadata.name == "get_payment"
        assert metadata.parameter_binding("payment_id").external_name == "paymentId"
        assert registry.find("GET", "/payments/query").name == "query_payments"
        assert {entry["name"] for entry in registry.describe()} >= {"create_payment", "query_payments_by_model"}
