"""Origin-bound forwarding handlers.

One OriginHandler per origin, each owning a persistent httpx client so
connections to that origin are pooled across requests.
"""

import httpx
import logfire

from .config import Settings


class OriginHandler:
    """Forwards requests to exactly one origin.

    The origin is fixed at construction. The underlying AsyncClient is safe
    to share between concurrent requests.
    """

    def __init__(
        self,
        origin: str,
        timeout: float,
        verify_tls: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._origin = origin
        self._base_url = httpx.URL(origin)
        self._client = httpx.AsyncClient(
            base_url=origin,
            timeout=httpx.Timeout(timeout),
            verify=verify_tls,
            transport=transport,
            # Redirects go back to the client untouched
            follow_redirects=False,
        )

    @property
    def origin(self) -> str:
        return self._origin

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    def __repr__(self) -> str:
        return f"OriginHandler({self._origin!r})"

    async def send(
        self,
        method: str,
        raw_path: bytes,
        headers: list[tuple[bytes, bytes]],
        content: bytes,
    ) -> httpx.Response:
        """Send a request to this origin, returning an open streaming response.

        raw_path is the path plus query string, already percent-encoded. It is
        attached to the origin as-is rather than merged like a relative URL.
        The caller owns the response and must close it.
        """
        request = self._client.build_request(
            method=method,
            url=self._base_url.copy_with(raw_path=raw_path),
            headers=headers,
            content=content,
        )
        return await self._client.send(request, stream=True)

    async def aclose(self):
        """Close the HTTP client and its pooled connections."""
        await self._client.aclose()


def default_handler_factory(settings: Settings):
    """Build the factory the registry uses to create handlers on demand."""

    def create(origin: str) -> OriginHandler:
        logfire.debug("Creating handler for {origin}", origin=origin, verify_tls=settings.verify_tls)
        return OriginHandler(
            origin,
            timeout=settings.timeout,
            verify_tls=settings.verify_tls,
        )

    return create
