"""RequestMediator: forwards data-plane requests to the REST gateway."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx
from fastapi import Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from baas_engine.common.exceptions import (
    AuthenticationError,
    BadRequestError,
    GatewayUnavailableError,
    UpstreamGatewayError,
)

logger = logging.getLogger(__name__)

WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
ROW_MODIFYING_METHODS = frozenset({"PUT", "PATCH", "DELETE"})

PGRST_MISSING_SCHEMA = "PGRST106"
PGRST_MISMATCH_PKEY = "PGRST115"
# Upstream error codes relayed to the caller as a 400
CLIENT_ERROR_CODES = frozenset({PGRST_MISMATCH_PKEY})

DEFAULT_PREFER = "return=representation"

_HOP_BY_HOP = frozenset({
    "connection", "keep-alive", "proxy-authenticate", "proxy-authorization",
    "te", "trailer", "transfer-encoding", "upgrade",
})
_NOT_FORWARDED = _HOP_BY_HOP | {
    "host", "content-length", "cookie", "x-baas-api-key", "x-baas-project-id",
    "accept-profile", "content-profile",
}

BodyRewriter = Callable[[httpx.Response, bytes], bytes]


@dataclass
class GatewayRequest:
    """One request bound for the gateway.

    ``body`` is an opaque JSON document; None means no body.
    """
    method: str
    path: str
    schema: str
    query: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[Any] = None


def _response_headers(upstream: httpx.Response, buffered: bool) -> dict[str, str]:
    dropped = _HOP_BY_HOP | {"content-length"}
    if buffered:
        # aread() has already decoded the body
        dropped = dropped | {"content-encoding"}
    return {k: v for k, v in upstream.headers.items() if k.lower() not in dropped}


class RequestMediator:
    """Rewrites headers/body for the gateway and translates its failures."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_request(self, request: GatewayRequest) -> httpx.Request:
        method = request.method.upper()
        query = request.query.lstrip("?")
        if method in ROW_MODIFYING_METHODS and not query:
            raise BadRequestError(
                "Query parameter(s) must be specified for modifying operations."
            )

        headers = {
            k.lower(): v for k, v in request.headers.items()
            if k.lower() not in _NOT_FORWARDED
        }
        authorization = headers.get("authorization", "")
        if not authorization.lower().startswith("bearer ") or not authorization[7:].strip():
            raise AuthenticationError("Bearer token is not set in header")

        profile_header = "content-profile" if method in WRITE_METHODS else "accept-profile"
        headers[profile_header] = request.schema
        headers.setdefault("prefer", DEFAULT_PREFER)

        content = None
        if request.body is not None:
            content = json.dumps(request.body).encode("utf-8")
            headers["content-type"] = "application/json"
            headers["content-length"] = str(len(content))

        path = "/" + request.path.lstrip("/")
        url = f"{path}?{query}" if query else path
        return self._get_client().build_request(method, url, headers=headers, content=content)

    async def forward(
        self, request: GatewayRequest, body_rewriter: BodyRewriter | None = None
    ) -> Response:
        """Send the request and relay the response.

        Successful responses stream straight through unless a body rewriter
        is given, in which case the body is buffered, rewritten and written out.
        Error responses are always buffered and translated.
        """
        outbound = self.build_request(request)
        client = self._get_client()
        try:
            upstream = await client.send(outbound, stream=True)
        except httpx.HTTPError as exc:
            logger.error(
                "Gateway request failed",
                extra={"method": outbound.method, "url": str(outbound.url), "error": str(exc)},
            )
            raise GatewayUnavailableError() from exc

        if upstream.status_code >= 300 or body_rewriter is not None:
            try:
                body = await upstream.aread()
            except httpx.HTTPError as exc:
                raise GatewayUnavailableError() from exc
            finally:
                await upstream.aclose()

            if upstream.status_code >= 300:
                self._raise_translated(outbound, upstream, body)
            return Response(
                content=body_rewriter(upstream, body),
                status_code=upstream.status_code,
                headers=_response_headers(upstream, buffered=True),
            )

        return StreamingResponse(
            upstream.aiter_raw(),
            status_code=upstream.status_code,
            headers=_response_headers(upstream, buffered=False),
            background=BackgroundTask(upstream.aclose),
        )

    def _raise_translated(
        self, outbound: httpx.Request, upstream: httpx.Response, body: bytes
    ) -> None:
        try:
            detail = json.loads(body) if body else {}
        except ValueError:
            detail = {}
        if not isinstance(detail, dict):
            detail = {}
        code = detail.get("code")

        if code in CLIENT_ERROR_CODES:
            raise BadRequestError(detail.get("message") or "Bad request")

        if code == PGRST_MISSING_SCHEMA:
            logger.warning(
                "Gateway does not expose the requested schema, config may be out of sync",
                extra={"url": str(outbound.url)},
            )
        logger.error(
            "Gateway returned an error",
            extra={
                "method": outbound.method,
                "url": str(outbound.url),
                "status": upstream.status_code,
                "gateway_code": code,
                "gateway_body": body.decode("utf-8", errors="replace"),
            },
        )
        raise UpstreamGatewayError(
            f"An internal server error occurred. Error code: {code or 'none'}"
        )
