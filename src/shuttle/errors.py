"""Error taxonomy for the Shuttle."""


class ShuttleError(Exception):
    """Base class for everything the Shuttle raises on purpose."""


class ConfigError(ShuttleError):
    """An environment setting could not be parsed."""


class MissingTargetParameter(ShuttleError):
    """The client did not say where to go (no ``url`` query parameter)."""


class InvalidTargetURL(ShuttleError):
    """The ``url`` parameter is not an absolute http(s) URL."""

    def __init__(self, target: str, reason: str):
        super().__init__(f"{reason}: {target!r}")
        self.target = target
        self.reason = reason


class HandlerConstructionFailure(ShuttleError):
    """Building the forwarding handler for an origin blew up."""

    def __init__(self, origin: str, cause: BaseException):
        super().__init__(f"could not create handler for {origin}: {cause}")
        self.origin = origin
        self.cause = cause


class UpstreamForwardingFailure(ShuttleError):
    """Talking to the origin failed (connect, timeout, TLS, premature close)."""

    def __init__(self, origin: str, cause: BaseException):
        super().__init__(f"forwarding to {origin} failed: {cause}")
        self.origin = origin
        self.cause = cause
