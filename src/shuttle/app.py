"""The Shuttle - FastAPI application.

Carries each request to whatever origin its ``?url=`` names.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
import httpx
import logfire

from .config import Settings
from .errors import HandlerConstructionFailure, InvalidTargetURL, MissingTargetParameter
from .forwarder import ForwardFailed, forward, stream_response
from .handler import default_handler_factory
from .middleware import CORSHeadersMiddleware
from .origin import origin_of, parse_target
from .registry import HandlerFactory, HandlerRegistry

USAGE_MESSAGE = (
    "Specify the target with the ?url= query parameter, "
    "e.g. http://localhost:3000/?url=https://example.com/image.jpg"
)
INVALID_URL_MESSAGE = "Invalid target URL format: expected an absolute http(s) URL"
FORWARD_FAILED_MESSAGE = "Proxy forwarding failed; check that the target URL is valid and reachable"


def target_of(request: Request) -> httpx.URL:
    """The validated target URL carried in the request's ``url`` parameter."""
    target = request.query_params.get("url")
    if not target:
        raise MissingTargetParameter()
    return parse_target(target)


# OPTIONS is listed so the preflight short-circuit below sees it
METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(
    settings: Settings | None = None,
    handler_factory: HandlerFactory | None = None,
) -> FastAPI:
    """Build a Shuttle app.

    Each app owns its own HandlerRegistry, created at startup and drained at
    shutdown. handler_factory defaults to OriginHandlers built from settings.
    """
    settings = settings or Settings.from_env()
    factory = handler_factory or default_handler_factory(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle."""
        app.state.registry = HandlerRegistry()
        logfire.info(
            "The Shuttle is listening on http://{host}:{port} (registry starts empty)",
            host=settings.host,
            port=settings.port,
        )
        yield
        logfire.info("The Shuttle is shutting down...")
        await app.state.registry.drain_all()

    app = FastAPI(
        title="The Shuttle",
        description="Dynamic origin-keyed reverse proxy.",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.handler_factory = factory
    app.add_middleware(CORSHeadersMiddleware)

    @app.api_route("/{path:path}", methods=METHODS)
    async def handle_request(request: Request, path: str):
        """Resolve the target's origin and forward through its handler."""
        if request.method == "OPTIONS":
            return Response(status_code=204)

        try:
            target = target_of(request)
        except MissingTargetParameter:
            return PlainTextResponse(USAGE_MESSAGE, status_code=400)
        except InvalidTargetURL as e:
            logfire.debug("Rejected target: {reason}", reason=e.reason, target=e.target)
            return PlainTextResponse(INVALID_URL_MESSAGE, status_code=400)

        origin = origin_of(target)
        registry: HandlerRegistry = request.app.state.registry

        try:
            handler = registry.get_or_create(origin, request.app.state.handler_factory)
        except Exception as e:
            failure = HandlerConstructionFailure(origin, e)
            logfire.exception("{failure}", failure=str(failure), origin=origin)
            return PlainTextResponse(FORWARD_FAILED_MESSAGE, status_code=502)

        outcome = await forward(request, target, handler)
        if isinstance(outcome, ForwardFailed):
            return PlainTextResponse(FORWARD_FAILED_MESSAGE, status_code=502)

        return stream_response(outcome)

    return app
