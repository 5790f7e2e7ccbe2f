"""Origin resolution - turning a target URL into the key its handler lives under."""

import httpx

from .errors import InvalidTargetURL

# Schemes an httpx client can actually forward to
SUPPORTED_SCHEMES = ("http", "https")


def parse_target(target: str | None) -> httpx.URL:
    """Parse and validate a client-supplied target URL.

    The URL must be absolute (scheme and host) and use http or https.
    Raises InvalidTargetURL otherwise.
    """
    if not target:
        raise InvalidTargetURL(target or "", "empty target")

    try:
        url = httpx.URL(target)
    except httpx.InvalidURL as e:
        raise InvalidTargetURL(target, f"malformed URL ({e})") from e

    if not url.scheme or not url.host:
        raise InvalidTargetURL(target, "not an absolute URL")
    if url.scheme not in SUPPORTED_SCHEMES:
        raise InvalidTargetURL(target, f"unsupported scheme {url.scheme!r}")

    return url


def origin_of(url: httpx.URL) -> str:
    """Canonical ``scheme://host[:port]`` for an already-parsed URL.

    Scheme and host are lower-cased, and a port equal to the scheme default
    is dropped (httpx normalizes it away), so ``HTTPS://Example.com:443/a``
    and ``https://example.com/b`` share a key. Userinfo never makes it in.
    """
    return f"{url.scheme.lower()}://{url.netloc.decode('ascii').lower()}"


def resolve_origin(target: str | None) -> str:
    """Resolve a target URL string to its origin key."""
    return origin_of(parse_target(target))
