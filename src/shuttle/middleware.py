"""CORS middleware - stamps permissive CORS headers on every response.

Starlette's CORSMiddleware only answers requests that carry an Origin header.
The Shuttle is fetched from browsers, curl and scripts alike, and every one of
them gets the same three headers, error responses included. Upstream values
for these headers are replaced, not merged.
"""

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
    "Access-Control-Allow-Headers": "Origin, X-Requested-With, Content-Type",
}


class CORSHeadersMiddleware:
    """Raw ASGI middleware, so streaming bodies pass through untouched."""

    def __init__(self, app: ASGIApp, headers: dict[str, str] | None = None):
        self.app = app
        self.headers = headers if headers is not None else CORS_HEADERS

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_cors(message: Message):
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in self.headers.items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_cors)
