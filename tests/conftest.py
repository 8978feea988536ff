"""Shared fixtures for dynaclient tests.

The session-scoped ``symbols`` fixture runs the full pipeline once over
the bundled petstore spec; HTTP is served by ``httpx.MockTransport`` so
nothing here touches the network.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from dynaclient.artifacts import SymbolTable
from dynaclient.invoker import ReflectiveInvoker
from dynaclient.pipeline import create_client

FIXTURES = Path(__file__).parent / "fixtures"
PETSTORE_SPEC = FIXTURES / "petstore.json"
MOCK_BASE_URL = "http://petstore.test/v2"


# ---------------------------------------------------------------------------
# Spec fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def petstore_path() -> Path:
    return PETSTORE_SPEC


@pytest.fixture(scope="session")
def petstore_spec() -> dict[str, Any]:
    """The bundled Swagger 2.0 petstore, parsed."""
    return json.loads(PETSTORE_SPEC.read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Pipeline: generate -> compile -> load, once per session
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def symbols(tmp_path_factory) -> SymbolTable:
    """Symbol table of a client generated from the petstore fixture."""
    root = tmp_path_factory.mktemp("pipeline")
    return create_client(str(PETSTORE_SPEC), root / "generated", root / "compiled")


@pytest.fixture(scope="session")
def invoker(symbols) -> ReflectiveInvoker:
    return ReflectiveInvoker(symbols)


# ---------------------------------------------------------------------------
# Mock HTTP
# ---------------------------------------------------------------------------

class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def mock_client(invoker) -> Callable[..., tuple[Any, RecordingTransport]]:
    """Factory for a generated ApiClient wired to a mock transport.

    Usage::

        client, transport = mock_client(lambda request: httpx.Response(200, json={}))
    """
    opened: list[httpx.Client] = []

    def _make(handler, base_path: str = MOCK_BASE_URL, **kwargs) -> tuple[Any, RecordingTransport]:
        transport = RecordingTransport(handler)
        http_client = httpx.Client(transport=transport)
        opened.append(http_client)
        client = invoker.new_client("swagger_client.ApiClient", base_path, **kwargs)
        invoker.call(client, "set_http_client", http_client)
        return client, transport

    yield _make
    for http_client in opened:
        http_client.close()
