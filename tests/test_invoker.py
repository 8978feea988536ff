"""Tests for reflective invocation of generated clients."""

import json

import httpx
import pytest

from dynaclient.errors import DomainInvocationError, InvocationPlumbingError, SymbolNotFoundError

MOCK_BASE_URL = "http://petstore.test/v2"
PET = {"id": 10, "name": "doggie", "photoUrls": ["a.png"], "status": "available", "category": {"id": 1, "name": "Dogs"}}


def _pet_server(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/v2/pet/findByStatus":
        return httpx.Response(200, json=[PET, dict(PET, id=11, status="sold")])
    if request.method == "GET" and path == "/v2/pet/10":
        return httpx.Response(200, json=PET)
    if request.method == "GET" and path.startswith("/v2/pet/"):
        return httpx.Response(404, json={"errors": [{"errorMessage": "Pet not found", "status": "404"}]})
    if request.method == "POST" and path == "/v2/pet":
        return httpx.Response(200, json=json.loads(request.content))
    if request.method == "POST" and path == "/v2/pet/10":
        return httpx.Response(200)
    return httpx.Response(500, text="unexpected request")


class TestPlumbing:
    """Caller mistakes raise InvocationPlumbingError before any request is sent."""

    def test_unknown_type(self, invoker):
        with pytest.raises(SymbolNotFoundError):
            invoker.construct("swagger_client.api.NoSuchApi")

    def test_not_a_class(self, invoker):
        with pytest.raises(InvocationPlumbingError, match="is not a class"):
            invoker.construct("swagger_client.api.pet_api")

    def test_bad_constructor_arguments(self, invoker):
        with pytest.raises(InvocationPlumbingError, match="No constructor"):
            invoker.construct("swagger_client.api.PetApi", 1, 2, 3)

    def test_unknown_method(self, invoker):
        api = invoker.construct("swagger_client.api.PetApi")
        with pytest.raises(InvocationPlumbingError, match="PetApi has no method adopt_pet"):
            invoker.invoke(api, "adopt_pet")

    def test_signature_match(self, invoker, symbols):
        api = invoker.construct("swagger_client.api.PetApi")
        method = invoker.find_method(api, "add_pet", signature=[symbols["swagger_client.model.Pet"]])
        assert method.__name__ == "add_pet"

    def test_signature_mismatch(self, invoker):
        api = invoker.construct("swagger_client.api.PetApi")
        with pytest.raises(InvocationPlumbingError, match=r"has no method get_pet_by_id\(str\)"):
            invoker.invoke(api, "get_pet_by_id", "10", signature=[str])

    def test_arguments_do_not_bind(self, invoker):
        api = invoker.construct("swagger_client.api.PetApi")
        with pytest.raises(InvocationPlumbingError, match="Cannot call PetApi.get_pet_by_id"):
            invoker.invoke(api, "get_pet_by_id")


class TestInvoke:
    """Calls through a mock transport."""

    def test_success(self, invoker, mock_client):
        client, transport = mock_client(_pet_server)
        api = invoker.attach_api("swagger_client.api.PetApi", client)

        result = invoker.invoke(api, "get_pet_by_id", 10, signature=[int])

        assert result.ok
        pet = result.unwrap()
        assert type(pet).__name__ == "Pet"
        assert pet.name == "doggie"
        assert pet.category.name == "Dogs"
        assert str(transport.requests[0].url) == f"{MOCK_BASE_URL}/pet/10"

    def test_list_response(self, invoker, mock_client):
        client, transport = mock_client(_pet_server)
        api = invoker.attach_api("swagger_client.api.PetApi", client)
        pets = invoker.call(api, "find_pets_by_status", ["available", "sold"])
        assert [p.id for p in pets] == [10, 11]
        assert transport.requests[0].url.params.get_list("status") == ["available", "sold"]

    def test_body_serialized(self, invoker, mock_client, symbols):
        client, transport = mock_client(_pet_server)
        api = invoker.attach_api("swagger_client.api.PetApi", client)
        pet_cls = symbols["swagger_client.model.Pet"]
        pet = invoker.construct("swagger_client.model.Pet", name="rex", photo_urls=[], status=pet_cls.StatusEnum.PENDING)

        invoker.call(api, "add_pet", pet)

        assert json.loads(transport.requests[0].content) == {"name": "rex", "photoUrls": [], "status": "pending"}

    def test_domain_failure_returned(self, invoker, mock_client):
        client, _ = mock_client(_pet_server)
        api = invoker.attach_api("swagger_client.api.PetApi", client)

        result = invoker.invoke(api, "get_pet_by_id", 404)

        assert not result.ok
        assert result.failure.status == 404
        assert type(result.failure.exception).__name__ == "ApiException"
        envelope = invoker.decode_failure(result.failure)
        assert envelope.message == "Pet not found"
        assert envelope.code == "404"

    def test_unwrap_raises_domain_error(self, invoker, mock_client):
        client, _ = mock_client(_pet_server)
        api = invoker.attach_api("swagger_client.api.PetApi", client)
        with pytest.raises(DomainInvocationError, match="status=404") as exc_info:
            invoker.call(api, "get_pet_by_id", 404)
        assert exc_info.value.failure.status == 404

    def test_transport_failure_is_domain_failure(self, invoker, mock_client):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        client, _ = mock_client(refuse)
        api = invoker.attach_api("swagger_client.api.PetApi", client)
        result = invoker.invoke(api, "get_pet_by_id", 10)
        assert result.failure.status is None
        assert "refused" in result.failure.exception.reason


class _Signer:
    def sign(self, target, name, signature):
        return f"{target}/{name}/{signature}"


class TestGeneratedKeywords:
    """Keywords named like the invoker's own parameters reach the generated code."""

    def test_construct_with_name_field(self, invoker):
        pet = invoker.construct("swagger_client.model.Pet", name="rex", photo_urls=[])
        assert pet.name == "rex"
        assert pet.to_dict() == {"name": "rex", "photoUrls": []}

    def test_construct_unknown_keyword(self, invoker):
        with pytest.raises(InvocationPlumbingError, match="No constructor"):
            invoker.construct("swagger_client.model.Pet", nickname="rex")

    def test_invoke_with_name_parameter(self, invoker, mock_client):
        client, transport = mock_client(_pet_server)
        api = invoker.attach_api("swagger_client.api.PetApi", client)

        result = invoker.invoke(api, "update_pet_with_form", 10, name="rex", signature=[int, str, str])

        assert result.ok
        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v2/pet/10"
        assert request.content.decode() == "name=rex"

    def test_call_passes_every_keyword(self, invoker):
        assert invoker.call(_Signer(), "sign", target="t", name="n", signature="s") == "t/n/s"

    def test_invoke_with_explicit_arguments(self, invoker):
        result = invoker.invoke_with(_Signer(), "sign", ("t",), {"name": "n", "signature": "s"})
        assert result.value == "t/n/s"

    def test_invoke_with_checks_signature(self, invoker):
        with pytest.raises(InvocationPlumbingError, match=r"has no method sign\(int\)"):
            invoker.invoke_with(_Signer(), "sign", (1,), signature=[int])


class TestClients:
    """Client instances built from one loaded type are independent."""

    def test_headers_not_shared(self, invoker, mock_client):
        first, first_transport = mock_client(_pet_server, headers={"X-Tenant": "one"})
        second, second_transport = mock_client(_pet_server, base_path="http://other.test/v2")

        invoker.call(invoker.attach_api("swagger_client.api.PetApi", first), "get_pet_by_id", 10)
        invoker.call(invoker.attach_api("swagger_client.api.PetApi", second), "get_pet_by_id", 10)

        assert first_transport.requests[0].headers["X-Tenant"] == "one"
        assert "X-Tenant" not in second_transport.requests[0].headers
        assert second_transport.requests[0].url.host == "other.test"

    def test_set_base_path(self, invoker):
        client = invoker.construct("swagger_client.ApiClient")
        invoker.set_base_path(client, "http://changed.test")
        assert invoker.call(client, "get_base_path") == "http://changed.test"
