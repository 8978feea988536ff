"""Authentication strategies for generated client instances.

Each strategy configures one client instance through the invoker, so a
bearer-token client and an API-key client built from the same loaded
client type never share state.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from .errors import FetchError

if TYPE_CHECKING:
    from .invoker import ReflectiveInvoker

logger = logging.getLogger(__name__)


class AuthStrategy(Protocol):
    def apply(self, invoker: ReflectiveInvoker, client: Any) -> None:
        ...


def _require(value: str, what: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"INVALID {what}")
    return value


def basic_credentials(api_key: str, api_secret: str) -> str:
    """base64 of ``key:secret``."""
    return base64.b64encode(f"{api_key}:{api_secret}".encode("utf-8")).decode("ascii")


@dataclass(frozen=True)
class BearerToken:
    token: str = field(repr=False)

    def apply(self, invoker: ReflectiveInvoker, client: Any) -> None:
        invoker.call(client, "set_access_token", _require(self.token, "ACCESS TOKEN"))


@dataclass(frozen=True)
class ApiKeySecret:
    """``Authorization: Apikey base64(key:secret)``."""

    api_key: str
    api_secret: str = field(repr=False)
    header: str = "Authorization"

    def header_value(self) -> str:
        api_key = _require(self.api_key, "API KEY")
        api_secret = _require(self.api_secret, "API SECRET")
        return "Apikey " + basic_credentials(api_key, api_secret)

    def apply(self, invoker: ReflectiveInvoker, client: Any) -> None:
        invoker.add_default_header(client, self.header, self.header_value())


@dataclass(frozen=True)
class ClientCredentials:
    """OAuth2 client-credentials grant; the issued token is applied as a bearer token."""

    api_key: str
    api_secret: str = field(repr=False)
    token_url: str = ""
    scope: str = "default"
    timeout: float | None = 30.0

    def fetch_token(self, client: httpx.Client | None = None) -> str:
        auth = "Basic " + basic_credentials(
            _require(self.api_key, "API KEY"), _require(self.api_secret, "API SECRET"),
        )
        form = {"grant_type": "client_credentials", "scope": self.scope}
        try:
            if client is not None:
                response = client.post(self.token_url, data=form, headers={"Authorization": auth})
            else:
                response = httpx.post(self.token_url, data=form, headers={"Authorization": auth}, timeout=self.timeout)
            response.raise_for_status()
            token = response.json()["access_token"]
        except httpx.HTTPStatusError as exc:
            raise FetchError(self.token_url, f"TOKEN GENERATION FAILED (HTTP {exc.response.status_code})") from exc
        except httpx.HTTPError as exc:
            raise FetchError(self.token_url, f"TOKEN GENERATION FAILED ({exc})") from exc
        except (ValueError, KeyError, TypeError) as exc:
            raise FetchError(self.token_url, "TOKEN GENERATION FAILED (no access_token in response)") from exc
        logger.info("Obtained access token from %s", self.token_url)
        return token

    def apply(self, invoker: ReflectiveInvoker, client: Any) -> None:
        BearerToken(self.fetch_token()).apply(invoker, client)
