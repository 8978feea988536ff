"""Session lifecycle for test suites that drive a generated client.

``setup`` runs the pipeline once per session and builds two clients
from the same loaded client type: one with bearer-style auth, one with
API-key auth. ``teardown`` removes both output directories.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .artifacts import SymbolTable
from .auth import ApiKeySecret, AuthStrategy, BearerToken, ClientCredentials
from .codegen import GenerationEngine, TemplateEngine
from .config import Settings
from .envelope import ErrorEnvelope
from .errors import HarnessError
from .invoker import DomainFailure, ReflectiveInvoker
from .pipeline import create_client, delete_directory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiPair:
    """One API type attached to each of the session's clients."""

    bearer: Any
    apikey: Any


class ClientSession:
    def __init__(self, settings: Settings | None = None, engine: GenerationEngine | None = None) -> None:
        self.settings = settings or Settings.from_env()
        self.engine = engine or TemplateEngine(self.settings.package)
        self.symbols: SymbolTable | None = None
        self.invoker: ReflectiveInvoker | None = None
        self.bearer_client: Any = None
        self.apikey_client: Any = None
        self._set_up = False
        self._torn_down = False

    @property
    def client_type(self) -> str:
        return self.settings.symbol("ApiClient")

    def bearer_auth(self) -> AuthStrategy | None:
        """Token from the environment, else a client-credentials grant if a token URL is set."""
        if self.settings.auth_token:
            return BearerToken(self.settings.auth_token)
        if self.settings.auth_token_url:
            return ClientCredentials(
                self.settings.api_key, self.settings.api_secret, self.settings.auth_token_url,
            )
        return None

    def apikey_auth(self) -> AuthStrategy:
        return ApiKeySecret(self.settings.api_key, self.settings.api_secret)

    def setup(self) -> SymbolTable:
        """Generate, compile and load the client, then configure both client instances."""
        if self._set_up:
            raise HarnessError("ClientSession.setup() may only run once per session")
        if self._torn_down:
            raise HarnessError("ClientSession has already been torn down")
        self._set_up = True

        settings = self.settings
        self.symbols = create_client(
            settings.spec,
            settings.generation_dir,
            settings.compiled_dir,
            engine=self.engine,
            timeout=settings.fetch_timeout,
        )
        self.invoker = ReflectiveInvoker(self.symbols, settings.symbol("ApiException"))
        self.bearer_client = self.invoker.new_client(
            self.client_type, settings.base_url, auth=self.bearer_auth(),
        )
        self.apikey_client = self.invoker.new_client(
            self.client_type, settings.base_url, auth=self.apikey_auth(),
        )
        logger.info("Client session ready against %s", settings.base_url)
        return self.symbols

    def _require_setup(self) -> ReflectiveInvoker:
        if self.invoker is None:
            raise HarnessError("ClientSession.setup() has not run")
        return self.invoker

    def api(self, name: str) -> ApiPair:
        """Instances of API type ``name`` (e.g. ``"api.PetApi"``) for both clients."""
        invoker = self._require_setup()
        qualified = self.settings.symbol(name)
        return ApiPair(
            bearer=invoker.attach_api(qualified, self.bearer_client),
            apikey=invoker.attach_api(qualified, self.apikey_client),
        )

    def teardown(self) -> None:
        """Delete the generation and compiled output roots."""
        if self._torn_down:
            raise HarnessError("ClientSession.teardown() may only run once per session")
        self._torn_down = True
        delete_directory(self.settings.generation_dir)
        delete_directory(self.settings.compiled_dir)
        logger.info("Client session torn down")


def _check(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


def assert_error_response(failure: DomainFailure | None, message: str, code: str) -> ErrorEnvelope:
    """Assert a legacy ``{errors: [{errorMessage, status}]}`` body."""
    _check(failure is not None, "expected the call to fail")
    envelope = failure.envelope()
    _check(envelope.shape == "legacy", f"expected a legacy error envelope, got {envelope.shape}")
    _check(envelope.first.error_message == message, "error message is not matched")
    _check(envelope.first.status == code, "error status is not matched")
    return envelope


def assert_error_response_v2(failure: DomainFailure | None, id: str, detail: str, code: str) -> ErrorEnvelope:
    """Assert a versioned ``{id, errors: [{detail, code}]}`` body."""
    _check(failure is not None, "expected the call to fail")
    envelope = failure.envelope()
    _check(envelope.shape == "versioned", f"expected a versioned error envelope, got {envelope.shape}")
    _check(envelope.identifier == id, "request id is not matched from response id")
    _check(envelope.first.detail == detail, "error detail is not matched")
    _check(envelope.first.code == code, "error code is not matched")
    return envelope
