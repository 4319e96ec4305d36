"""Tests for RequestMediator header rewriting, forwarding and error translation."""

import json

import httpx
import pytest
from fastapi.responses import StreamingResponse

from baas_engine.common.exceptions import (
    AuthenticationError,
    BadRequestError,
    GatewayUnavailableError,
    UpstreamGatewayError,
)
from baas_engine.gateway.mediator import GatewayRequest, RequestMediator
from tests.conftest import GATEWAY_URL

AUTH = {"Authorization": "Bearer gateway-token"}


@pytest.fixture
async def mediator(gateway):
    mediator = RequestMediator(GATEWAY_URL, transport=httpx.MockTransport(gateway))
    yield mediator
    await mediator.close()


def _request(method="GET", query="", body=None, headers=None, **kwargs):
    return GatewayRequest(
        method=method,
        path="/employee_list",
        schema="ws_7_abc",
        query=query,
        headers=headers if headers is not None else dict(AUTH),
        body=body,
        **kwargs,
    )


async def _read(response) -> bytes:
    if hasattr(response, "body_iterator"):
        chunks = [chunk async for chunk in response.body_iterator]
        return b"".join(c if isinstance(c, bytes) else c.encode() for c in chunks)
    return response.body


class TestBuildRequest:
    @pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE"])
    def test_row_modifying_requires_query(self, mediator, method):
        with pytest.raises(BadRequestError) as exc_info:
            mediator.build_request(_request(method, body={"a": 1}))
        assert exc_info.value.message == (
            "Query parameter(s) must be specified for modifying operations."
        )

    def test_post_without_query_allowed(self, mediator):
        request = mediator.build_request(_request("POST", body={"a": 1}))
        assert request.method == "POST"

    def test_requires_bearer(self, mediator):
        with pytest.raises(AuthenticationError):
            mediator.build_request(_request(headers={}))

    def test_rejects_empty_bearer(self, mediator):
        with pytest.raises(AuthenticationError):
            mediator.build_request(_request(headers={"Authorization": "Bearer "}))

    def test_accept_profile_for_reads(self, mediator):
        request = mediator.build_request(_request("GET"))
        assert request.headers["accept-profile"] == "ws_7_abc"
        assert "content-profile" not in request.headers

    @pytest.mark.parametrize("method", ["POST", "PATCH"])
    def test_content_profile_for_writes(self, mediator, method):
        request = mediator.build_request(_request(method, query="id=eq.1", body={"a": 1}))
        assert request.headers["content-profile"] == "ws_7_abc"
        assert "accept-profile" not in request.headers

    def test_caller_cannot_choose_profile(self, mediator):
        headers = {**AUTH, "Accept-Profile": "ws_1_other"}
        request = mediator.build_request(_request(headers=headers))
        assert request.headers["accept-profile"] == "ws_7_abc"

    def test_default_prefer(self, mediator):
        request = mediator.build_request(_request())
        assert request.headers["prefer"] == "return=representation"

    def test_caller_prefer_kept(self, mediator):
        request = mediator.build_request(_request(headers={**AUTH, "Prefer": "count=exact"}))
        assert request.headers["prefer"] == "count=exact"

    def test_body_serialized_with_length(self, mediator):
        request = mediator.build_request(_request("POST", body=[{"name": "Ann"}]))
        assert json.loads(request.content) == [{"name": "Ann"}]
        assert request.headers["content-length"] == str(len(request.content))
        assert request.headers["content-type"] == "application/json"

    def test_strips_internal_headers(self, mediator):
        headers = {**AUTH, "x-baas-api-key": "k", "Cookie": "a=b", "Host": "evil"}
        request = mediator.build_request(_request(headers=headers))
        assert "x-baas-api-key" not in request.headers
        assert "cookie" not in request.headers
        assert request.headers["host"] == "gateway.test"

    def test_query_appended(self, mediator):
        request = mediator.build_request(_request("GET", query="?select=id&id=eq.1"))
        assert str(request.url) == f"{GATEWAY_URL}/employee_list?select=id&id=eq.1"


class TestForward:
    async def test_relays_success(self, mediator, gateway):
        gateway.handler = lambda r: httpx.Response(200, json=[{"id": 1}])
        response = await mediator.forward(_request())
        assert response.status_code == 200
        assert json.loads(await _read(response)) == [{"id": 1}]
        assert gateway.last.headers["authorization"] == "Bearer gateway-token"

    async def test_streams_body_unbuffered(self, mediator, gateway):
        rows = [{"id": i, "full_name": f"Employee {i}"} for i in range(20)]
        gateway.handler = lambda r: httpx.Response(200, json=rows)
        response = await mediator.forward(_request())

        assert isinstance(response, StreamingResponse)
        chunks = [chunk async for chunk in response.body_iterator]
        assert len(chunks) > 1
        assert json.loads(b"".join(chunks)) == rows

    async def test_relays_created(self, mediator, gateway):
        gateway.handler = lambda r: httpx.Response(201, json=[{"id": 5}])
        response = await mediator.forward(_request("POST", body={"name": "Ann"}))
        assert response.status_code == 201

    async def test_modifying_without_query_sends_nothing(self, mediator, gateway):
        with pytest.raises(BadRequestError):
            await mediator.forward(_request("PUT", body={"id": 1}))
        assert gateway.requests == []

    async def test_body_rewriter_applied(self, mediator, gateway):
        gateway.handler = lambda r: httpx.Response(200, content=b"abc")
        response = await mediator.forward(_request(), body_rewriter=lambda resp, body: body.upper())
        assert response.body == b"ABC"


class TestErrorTranslation:
    async def test_pkey_mismatch_is_bad_request(self, mediator, gateway):
        gateway.handler = lambda r: httpx.Response(
            400, json={"code": "PGRST115", "message": "Payload values do not match URL"}
        )
        with pytest.raises(BadRequestError) as exc_info:
            await mediator.forward(_request("PUT", query="id=eq.1", body={"id": 2}))
        assert exc_info.value.message == "Payload values do not match URL"

    async def test_permission_error_is_generic(self, mediator, gateway):
        gateway.handler = lambda r: httpx.Response(
            403,
            json={
                "code": "42501",
                "message": 'new row violates row-level security policy for table "employee_list"',
            },
        )
        with pytest.raises(UpstreamGatewayError) as exc_info:
            await mediator.forward(_request("POST", body={"name": "Ann"}))
        assert exc_info.value.status_code == 500
        assert exc_info.value.message == (
            "An internal server error occurred. Error code: 42501"
        )
        assert "row-level" not in exc_info.value.message

    async def test_missing_schema(self, mediator, gateway):
        gateway.handler = lambda r: httpx.Response(406, json={"code": "PGRST106"})
        with pytest.raises(UpstreamGatewayError):
            await mediator.forward(_request())

    async def test_non_json_error_body(self, mediator, gateway):
        gateway.handler = lambda r: httpx.Response(502, content=b"<html>bad gateway</html>")
        with pytest.raises(UpstreamGatewayError) as exc_info:
            await mediator.forward(_request())
        assert exc_info.value.message.endswith("Error code: none")

    async def test_unreachable_gateway(self, mediator, gateway):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        gateway.handler = refuse
        with pytest.raises(GatewayUnavailableError) as exc_info:
            await mediator.forward(_request())
        assert exc_info.value.status_code == 502
