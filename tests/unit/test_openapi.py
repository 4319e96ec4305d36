"""Tests for the OpenAPI document rewrite served to API users."""

import json

import httpx
import pytest

from baas_engine.common.exceptions import UpstreamGatewayError
from baas_engine.gateway.openapi import (
    OPENAPI_CONTENT_TYPE,
    openapi_body_rewriter,
    rewrite_openapi_document,
)


def _document():
    return {
        "swagger": "2.0",
        "host": "gateway.internal:3000",
        "basePath": "/",
        "paths": {
            "/employee_list": {
                "get": {"summary": "list"},
                "post": {"summary": "create"},
                "patch": {"summary": "update"},
                "delete": {"summary": "delete"},
                "parameters": [],
            },
            "/": {"get": {"summary": "root"}},
        },
    }


class TestRewriteDocument:
    def test_host_and_base_path(self):
        document = rewrite_openapi_document(_document(), "baas.example.com")
        assert document["host"] == "baas.example.com"
        assert document["basePath"] == "/api/data"

    def test_read_only_keeps_only_reads(self):
        document = rewrite_openapi_document(_document(), "baas.example.com", read_only=True)
        assert set(document["paths"]["/employee_list"]) == {"get", "parameters"}

    def test_writable_keeps_everything(self):
        document = rewrite_openapi_document(_document(), "baas.example.com", read_only=False)
        assert "post" in document["paths"]["/employee_list"]


class TestBodyRewriter:
    def test_rewrites_openapi_responses(self):
        rewrite = openapi_body_rewriter("baas.example.com", read_only=True)
        response = httpx.Response(
            200, headers={"content-type": f"{OPENAPI_CONTENT_TYPE}; charset=utf-8"}
        )
        body = rewrite(response, json.dumps(_document()).encode())
        assert json.loads(body)["host"] == "baas.example.com"

    def test_leaves_other_content_alone(self):
        rewrite = openapi_body_rewriter("baas.example.com", read_only=True)
        response = httpx.Response(200, headers={"content-type": "application/json"})
        assert rewrite(response, b"[1, 2]") == b"[1, 2]"

    def test_unparseable_document_is_upstream_error(self):
        rewrite = openapi_body_rewriter("baas.example.com", read_only=True)
        response = httpx.Response(200, headers={"content-type": OPENAPI_CONTENT_TYPE})
        with pytest.raises(UpstreamGatewayError):
            rewrite(response, b"<html>bad gateway</html>")
