"""Request forwarding - rewrite the inbound request and hand it to its origin's handler."""

from dataclasses import dataclass

import httpx
import logfire
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import StreamingResponse

from .errors import UpstreamForwardingFailure
from .handler import OriginHandler

# Hop-by-hop headers (RFC 9110 section 7.6.1) never cross the proxy
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


@dataclass(frozen=True)
class Forwarded:
    """The origin answered. response is open and streaming."""

    origin: str
    response: httpx.Response


@dataclass(frozen=True)
class ForwardFailed:
    """The origin could not be reached, or gave up before answering."""

    origin: str
    error: UpstreamForwardingFailure


ForwardOutcome = Forwarded | ForwardFailed


def filter_request_headers(headers: list[tuple[bytes, bytes]]) -> list[tuple[bytes, bytes]]:
    """Drop headers that describe the hop to the proxy rather than the request.

    Host goes too, so httpx addresses the origin instead of us. Works on raw
    header bytes: values are not always ASCII, and go out as received.
    """
    return [
        (k, v) for k, v in headers
        if k.decode("latin-1").lower() not in HOP_BY_HOP_HEADERS
        and k.lower() not in (b"host", b"content-length")
    ]


def filter_response_headers(headers: list[tuple[bytes, bytes]]) -> list[tuple[bytes, bytes]]:
    """Drop hop-by-hop headers; the server re-frames the streamed body itself.

    Works on raw header bytes so values are passed back exactly as received.
    """
    return [
        (k, v) for k, v in headers
        if k.decode("latin-1").lower() not in HOP_BY_HOP_HEADERS
        and k.lower() != b"content-length"
    ]


def upstream_path(target: httpx.URL) -> bytes:
    """Path and query of the target, as sent on the wire. No fragment."""
    return target.raw_path


async def forward(request: Request, target: httpx.URL, handler: OriginHandler) -> ForwardOutcome:
    """Forward request to target through handler.

    Method, headers and body pass through; only the path changes (the
    ``/?url=...`` wrapper is replaced by the target's own path and query).
    Transport failures come back as ForwardFailed, never as exceptions.
    """
    origin = handler.origin
    body = await request.body()
    headers = filter_request_headers(request.headers.raw)

    try:
        response = await handler.send(
            method=request.method,
            raw_path=upstream_path(target),
            headers=headers,
            content=body,
        )
    except httpx.HTTPError as e:
        logfire.error(
            "Forwarding to {origin} failed: {error}",
            origin=origin,
            error=str(e) or type(e).__name__,
            error_type=type(e).__name__,
        )
        return ForwardFailed(origin=origin, error=UpstreamForwardingFailure(origin, e))
    except Exception as e:
        # Not a transport error: the request could not be built or sent at all
        logfire.exception(
            "Forwarding to {origin} failed: {error}",
            origin=origin,
            error=str(e) or type(e).__name__,
            error_type=type(e).__name__,
        )
        return ForwardFailed(origin=origin, error=UpstreamForwardingFailure(origin, e))

    return Forwarded(origin=origin, response=response)


async def relay_body(origin: str, response: httpx.Response):
    """Yield the raw upstream body, closing the response when done.

    Headers are already on their way to the client by the time this runs, so
    a failure here can only be logged; whatever was sent stays sent.
    """
    try:
        async for chunk in response.aiter_raw():
            yield chunk
    except httpx.HTTPError as e:
        logfire.error(
            "Upstream {origin} failed mid-response: {error}",
            origin=origin,
            error=str(e) or type(e).__name__,
            error_type=type(e).__name__,
        )
    finally:
        await response.aclose()


def stream_response(outcome: Forwarded) -> StreamingResponse:
    """Pass the origin's status, headers and body through to the client."""
    upstream = outcome.response
    response = StreamingResponse(
        relay_body(outcome.origin, upstream),
        status_code=upstream.status_code,
        # Closes the upstream even if the body was never iterated
        background=BackgroundTask(upstream.aclose),
    )
    # raw_headers keeps repeated headers such as Set-Cookie intact
    response.raw_headers.extend(filter_response_headers(upstream.headers.raw))
    return response
