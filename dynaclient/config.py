"""Runtime settings read from environment variables.

Every value has a fallback so a bare ``pytest`` run works against the
public Swagger petstore.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_SPEC = "https://petstore.swagger.io/v2/swagger.json"
DEFAULT_BASE_URL = "https://petstore.swagger.io/v2"
DEFAULT_API_KEY = "defaultApiKeyValue"
DEFAULT_API_SECRET = "defaultApiSecretValue"
DEFAULT_GENERATION_DIR = "target/generated-client"
DEFAULT_COMPILED_DIR = "target/compiled-client"
DEFAULT_PACKAGE = "swagger_client"
DEFAULT_FETCH_TIMEOUT = 30.0


def _env(name: str, default: str | None = None) -> str | None:
    """Read an env var, treating blank values as unset."""
    value = os.environ.get(name, "").strip()
    return value or default


def _timeout(name: str, default: float) -> float | None:
    """Seconds from an env var; "0" disables the bound."""
    value = _env(name)
    if value is None:
        return default
    try:
        seconds = float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds, got {value!r}") from exc
    return seconds or None


@dataclass(frozen=True)
class Settings:
    spec: str = DEFAULT_SPEC
    base_url: str = DEFAULT_BASE_URL
    api_key: str = DEFAULT_API_KEY
    api_secret: str = DEFAULT_API_SECRET
    auth_token: str | None = None
    auth_token_url: str | None = None
    generation_dir: Path = Path(DEFAULT_GENERATION_DIR)
    compiled_dir: Path = Path(DEFAULT_COMPILED_DIR)
    package: str = DEFAULT_PACKAGE
    fetch_timeout: float | None = DEFAULT_FETCH_TIMEOUT

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from DYNACLIENT_* / AUTH_* environment variables."""
        return cls(
            spec=_env("DYNACLIENT_SPEC", DEFAULT_SPEC),
            base_url=_env("DYNACLIENT_BASE_URL", DEFAULT_BASE_URL),
            api_key=_env("AUTH_API_KEY", DEFAULT_API_KEY),
            api_secret=_env("AUTH_API_SECRET", DEFAULT_API_SECRET),
            auth_token=_env("AUTH_TOKEN"),
            auth_token_url=_env("AUTH_TOKEN_URL"),
            generation_dir=Path(_env("DYNACLIENT_GENERATION_DIR", DEFAULT_GENERATION_DIR)),
            compiled_dir=Path(_env("DYNACLIENT_COMPILED_DIR", DEFAULT_COMPILED_DIR)),
            package=_env("DYNACLIENT_PACKAGE", DEFAULT_PACKAGE),
            fetch_timeout=_timeout("DYNACLIENT_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT),
        )

    def symbol(self, name: str) -> str:
        """Qualify a generated symbol with the client package."""
        return f"{self.package}.{name}"
