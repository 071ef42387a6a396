from types import SimpleNamespace

from fastapi.responses import JSONResponse
from starlette.requests import Request

from core.middleware import _outcome
from core.validation import PROBLEM_MEDIA_TYPE


def make_request(route=None, **state) -> Request:
    scope = {"type": "http", "method": "GET", "path": "/payments/abc", "headers": [], "state": state}
    if route is not None:
        scope["route"] = route
    return Request(scope)


class TestOutcome:
    def test_problem_response(self):
        request = make_request(SimpleNamespace(name="get_payment"), problem_fields=["paymentId"])
        response = JSONResponse({"errors": {}}, status_code=400, media_type=PROBLEM_MEDIA_TYPE)
        assert _outcome(request, response) == {
            "status": 400,
            "endpoint": "get_payment",
            "problem": True,
            "problem_fields": 1,
            "fields": ["paymentId"],
        }

    def test_plain_response(self):
        request = make_request(SimpleNamespace(name="get_payment"))
        response = JSONResponse({"id": 1})
        assert _outcome(request, response) == {"status": 200, "endpoint": "get_payment"}

    def test_unmatched_route(self):
        response = JSONResponse({"error": {}}, status_code=404)
        assert _outcome(make_request(), response) == {"status": 404, "endpoint": None}
