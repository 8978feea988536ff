"""Integration tests against the public Swagger petstore.

These exercise the whole pipeline over the network: fetch the live spec,
generate, compile and load the client, then call it through both
authenticated clients. The petstore ignores credentials, so both
clients must see the same behavior.

Skipped automatically when the petstore is unreachable.

Known API behaviors discovered during integration testing:
- GET /pet/{petId} for a missing id returns 404 with a
  ``{code, type, message}`` body, which matches neither error envelope
- Pets created by other users may be deleted at any moment; tests
  create their own pet with a random id before reading it back
"""

from __future__ import annotations

import random

import httpx
import pytest

from dynaclient.config import DEFAULT_BASE_URL, DEFAULT_SPEC, Settings
from dynaclient.errors import EnvelopeDecodeError
from dynaclient.harness import ClientSession

pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module")
def petstore_available():
    """Skip if the public petstore cannot be reached."""
    try:
        resp = httpx.get(DEFAULT_SPEC, timeout=10)
        if resp.status_code != 200:
            pytest.skip(f"petstore spec returned {resp.status_code}")
    except httpx.RequestError:
        pytest.skip(f"petstore not reachable at {DEFAULT_SPEC}")


@pytest.fixture(scope="module")
def session(petstore_available, tmp_path_factory):
    root = tmp_path_factory.mktemp("live")
    settings = Settings(
        spec=DEFAULT_SPEC,
        base_url=DEFAULT_BASE_URL,
        auth_token="integration-token",
        generation_dir=root / "generated",
        compiled_dir=root / "compiled",
    )
    client_session = ClientSession(settings)
    client_session.setup()
    yield client_session
    client_session.teardown()


# ===========================================================================
# Pipeline
# ===========================================================================

class TestLiveSpec:
    def test_api_types_loaded(self, session):
        apis = session.symbols.types("api")
        assert {"swagger_client.api.PetApi", "swagger_client.api.StoreApi", "swagger_client.api.UserApi"} <= set(apis)

    def test_nested_enum_loaded(self, session):
        assert "swagger_client.model.Pet.StatusEnum" in session.symbols


# ===========================================================================
# Calls through both clients
# ===========================================================================

class TestPetApi:
    def test_add_then_get(self, session):
        invoker = session.invoker
        pets = session.api("api.PetApi")
        pet_id = random.randint(10**9, 2 * 10**9)
        pet = invoker.construct("swagger_client.model.Pet", id=pet_id, name="dynaclient", photo_urls=[])

        invoker.call(pets.bearer, "add_pet", pet)
        result = invoker.invoke(pets.apikey, "get_pet_by_id", pet_id)

        if not result.ok and result.failure.status == 404:
            pytest.skip("petstore dropped the pet before it could be read back")
        assert result.unwrap().name == "dynaclient"

    def test_find_by_status(self, session):
        pets = session.api("api.PetApi")
        found = session.invoker.call(pets.bearer, "find_pets_by_status", ["sold"])
        assert isinstance(found, list)

    def test_missing_pet_is_domain_failure(self, session):
        pets = session.api("api.PetApi")
        result = session.invoker.invoke(pets.apikey, "get_pet_by_id", -1)
        assert not result.ok
        assert result.failure.status in (400, 404)
        with pytest.raises(EnvelopeDecodeError):
            result.failure.envelope()


class TestStoreApi:
    def test_inventory(self, session):
        store = session.api("api.StoreApi")
        inventory = session.invoker.call(store.bearer, "get_inventory")
        assert isinstance(inventory, dict)
