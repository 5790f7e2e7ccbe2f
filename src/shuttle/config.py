"""Runtime settings, read from the environment."""

import os
from dataclasses import dataclass

from .errors import ConfigError

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_TIMEOUT_MS = 15000

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off", "")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Everything the Shuttle needs to know at startup.

    TLS verification toward upstreams is off by default: the Shuttle will
    fetch from origins with self-signed or otherwise invalid certificates.
    Turn ``verify_tls`` on when proxying anything you actually care about.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    verify_tls: bool = False

    def __post_init__(self):
        if self.timeout_ms <= 0:
            raise ConfigError(f"timeout_ms must be positive, got {self.timeout_ms}")
        if not 0 < self.port < 65536:
            raise ConfigError(f"port out of range: {self.port}")

    @property
    def timeout(self) -> float:
        """Upstream timeout in seconds, the way httpx wants it."""
        return self.timeout_ms / 1000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.environ.get("SHUTTLE_HOST", DEFAULT_HOST),
            port=_env_int("SHUTTLE_PORT", DEFAULT_PORT),
            timeout_ms=_env_int("SHUTTLE_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            verify_tls=_env_bool("SHUTTLE_VERIFY_TLS", False),
        )
