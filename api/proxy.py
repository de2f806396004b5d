"""Forward /api requests upstream, repairing malformed JSON response bodies.

JSON responses are buffered in full before anything is emitted: repairs such
as offset truncation need the final parse error of the complete body. Other
content types stream through untouched.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from api.config import proxy_timeout_seconds, repair_enabled, upstream_url
from payload import Strategy, decode
from payload.metrics import record_proxy_action

logger = logging.getLogger(__name__)

router = APIRouter()

Headers = list[tuple[str, str]]

_HOP_BY_HOP = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)


@dataclass(frozen=True)
class ProxyBody:
    body: bytes
    headers: Headers
    repaired: bool


def _build_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=upstream_url(), timeout=proxy_timeout_seconds())


def is_json_content_type(value: str | None) -> bool:
    if not value:
        return False
    media_type = value.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _without(headers: Iterable[tuple[str, str]], names: Iterable[str]) -> Headers:
    dropped = {name.lower() for name in names}
    return [(key, value) for key, value in headers if key.lower() not in dropped]


def _with_length(headers: Iterable[tuple[str, str]], length: int) -> Headers:
    return [*_without(headers, ["content-length"]), ("content-length", str(length))]


def rewrite_body(body: bytes, headers: Iterable[tuple[str, str]]) -> ProxyBody:
    """Repair a buffered JSON body.

    The original body is kept when it already parses or when no repair
    works. A substituted body gets a matching content-length header if the
    upstream sent one.
    """
    headers = list(headers)
    result = decode(body)
    if not result.ok:
        record_proxy_action("unrepairable")
        logger.warning(
            "Forwarding unrepairable JSON body unchanged",
            extra={"error": result.error.message if result.error else None},
        )
        return ProxyBody(body=body, headers=headers, repaired=False)

    repaired = result.text.encode("utf-8") if result.text is not None else body
    if result.strategy is Strategy.STRICT or repaired == body:
        record_proxy_action("passthrough")
        return ProxyBody(body=body, headers=headers, repaired=False)

    if any(key.lower() == "content-length" for key, _ in headers):
        headers = _with_length(headers, len(repaired))
    record_proxy_action("repaired")
    logger.info(
        "Substituted repaired JSON body",
        extra={"strategy": str(result.strategy), "original_len": len(body), "repaired_len": len(repaired)},
    )
    return ProxyBody(body=repaired, headers=headers, repaired=True)


async def buffer_body(chunks: AsyncIterator[bytes]) -> bytes:
    """Collect every chunk before returning; a failed or cancelled read leaves nothing behind."""
    buffer = bytearray()
    async for chunk in chunks:
        buffer.extend(chunk)
    return bytes(buffer)


def _raw_headers(headers: Iterable[tuple[str, str]]) -> list[tuple[bytes, bytes]]:
    return [(key.lower().encode("latin-1"), value.encode("latin-1")) for key, value in headers]


def _request_headers(request: Request) -> Headers:
    return _without(request.headers.items(), [*_HOP_BY_HOP, "host", "content-length"])


async def _close(upstream: httpx.Response, client: httpx.AsyncClient) -> None:
    await upstream.aclose()
    await client.aclose()


def _upstream_failed() -> JSONResponse:
    return JSONResponse(status_code=502, content={"error": "Upstream API request failed."})


@router.api_route(
    "/api/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    summary="Forward a request upstream and repair malformed JSON responses",
)
async def proxy(path: str, request: Request) -> Response:
    # Read the inbound body before any upstream client exists.
    content = await request.body()
    client = _build_client()
    upstream_request = client.build_request(
        request.method,
        f"/api/{path}",
        params=list(request.query_params.multi_items()),
        headers=_request_headers(request),
        content=content,
    )
    logger.info("Proxying request", extra={"method": request.method, "path": f"/api/{path}"})
    try:
        upstream = await client.send(upstream_request, stream=True)
    except httpx.RequestError as exc:
        await client.aclose()
        logger.warning("Upstream request failed", extra={"path": f"/api/{path}", "error": str(exc)})
        return _upstream_failed()

    headers = _without(upstream.headers.multi_items(), _HOP_BY_HOP)
    if not is_json_content_type(upstream.headers.get("content-type")):
        record_proxy_action("streamed")
        streamed = StreamingResponse(
            upstream.aiter_raw(),
            status_code=upstream.status_code,
            background=BackgroundTask(_close, upstream, client),
        )
        streamed.raw_headers = _raw_headers(headers)
        return streamed

    try:
        body = await buffer_body(upstream.aiter_bytes())
    except httpx.HTTPError as exc:
        logger.warning(
            "Upstream aborted while buffering JSON body",
            extra={"path": f"/api/{path}", "error": str(exc)},
        )
        return _upstream_failed()
    finally:
        await _close(upstream, client)

    # aiter_bytes() yields decoded content, so the upstream encoding no longer applies.
    headers = _without(headers, ["content-encoding"])
    if repair_enabled():
        forwarded = rewrite_body(body, headers)
    else:
        record_proxy_action("passthrough")
        forwarded = ProxyBody(body=body, headers=headers, repaired=False)

    response = Response(content=forwarded.body, status_code=upstream.status_code)
    response.raw_headers = _raw_headers(_with_length(forwarded.headers, len(forwarded.body)))
    return response
