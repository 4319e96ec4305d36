"""Rewrites the gateway's OpenAPI document for external API users."""

import json
import logging
from typing import Any, Callable

import httpx

from baas_engine.common.exceptions import UpstreamGatewayError

logger = logging.getLogger(__name__)

OPENAPI_CONTENT_TYPE = "application/openapi+json"
DATA_API_BASE_PATH = "/api/data"


def rewrite_openapi_document(
    document: dict[str, Any],
    host: str,
    base_path: str = DATA_API_BASE_PATH,
    read_only: bool = True,
) -> dict[str, Any]:
    """Point the document at this service and hide writes from read-only tokens."""
    document["host"] = host
    document["basePath"] = base_path
    if read_only:
        for path, operations in document.get("paths", {}).items():
            if isinstance(operations, dict):
                document["paths"][path] = {
                    method: op
                    for method, op in operations.items()
                    if method.lower() in ("get", "parameters")
                }
    return document


def openapi_body_rewriter(host: str, read_only: bool) -> Callable[[httpx.Response, bytes], bytes]:
    def rewrite(response: httpx.Response, body: bytes) -> bytes:
        content_type = response.headers.get("content-type", "")
        if not content_type.startswith(OPENAPI_CONTENT_TYPE):
            return body
        try:
            document = json.loads(body)
        except ValueError as exc:
            logger.error("Gateway returned an unparseable OpenAPI document")
            raise UpstreamGatewayError() from exc
        return json.dumps(
            rewrite_openapi_document(document, host, read_only=read_only)
        ).encode("utf-8")

    return rewrite
