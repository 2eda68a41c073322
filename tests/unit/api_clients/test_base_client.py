"""Tests for SObjectAPIClient dispatching against the fake sObject server."""

import asyncio
import logging

import httpx
import pytest

from sobject_client.api_clients import (
    AuthenticationError,
    MalformedPayloadError,
    MissingFieldError,
    QueryBuilder,
    ServiceError,
    SObjectAPIClient,
    TransportError,
    UnexpectedStatusError,
)
from sobject_client.api_clients.operations import GetOperation
from sobject_client.config import ClientConfig

PREFIX = "/services/data/v36.0"


class TestClientConstruction:
    """One-time normalisation of lifetime and API version."""

    def test_non_positive_lifetime_defaults_to_3600(self, client_config, caplog):
        config = client_config.model_copy(update={"expires_in": 0})
        with caplog.at_level(logging.WARNING):
            client = SObjectAPIClient(config)
        assert client.authenticator.token_lifetime == 3600
        assert "Invalid token lifetime" in caplog.text
        # The config object itself is left untouched
        assert config.expires_in == 0

    def test_out_of_range_version_is_clamped(self, client_config, caplog):
        config = client_config.model_copy(update={"api_version": 42})
        with caplog.at_level(logging.WARNING):
            client = SObjectAPIClient(config)
        assert client.api_version == 37
        assert client.request_context().version_url().endswith("/v37.0")
        assert "out of bound" in caplog.text

    def test_injected_logger_is_shared_with_authenticator(self, client_config):
        log = logging.getLogger("test.base_client")
        client = SObjectAPIClient(client_config, logger=log)
        assert client.logger is log
        assert client.authenticator.logger is log

    def test_each_call_gets_its_own_context(self, client_config):
        client = SObjectAPIClient(client_config)
        first = client.request_context()
        second = client.request_context()
        assert first == second
        assert first is not second


class TestObjectOperations:
    """Public create/update/delete/get/query surface."""

    @pytest.mark.asyncio
    async def test_create_object_returns_id(self, api_client, fake_server):
        fake_server.route(
            "POST",
            f"{PREFIX}/sobjects/Account",
            201,
            {"id": "001D000000IqhSLIAZ", "errors": [], "success": True},
        )

        new_id = await api_client.create_object("Account", {"Name": "Acme"})

        assert new_id == "001D000000IqhSLIAZ"
        request = fake_server.requests[0]
        assert request.headers["Authorization"] == "Bearer test-access-token-1"
        assert request.headers["Content-Type"] == "application/json"
        assert fake_server.json_of(request) == {"Name": "Acme"}

    @pytest.mark.asyncio
    async def test_update_object(self, api_client, fake_server):
        fake_server.route("PATCH", f"{PREFIX}/sobjects/Account/001", 200)

        await api_client.update_object("Account", "001", {"Name": "Acme 2"})

        assert fake_server.requests[0].method == "PATCH"
        assert fake_server.json_of(fake_server.requests[0]) == {"Name": "Acme 2"}

    @pytest.mark.asyncio
    async def test_delete_object(self, api_client, fake_server):
        fake_server.route("DELETE", f"{PREFIX}/sobjects/Account/001", 204)

        await api_client.delete_object("Account", "001")

        assert fake_server.requests[0].method == "DELETE"

    @pytest.mark.asyncio
    async def test_get_object(self, api_client, fake_server):
        record = {"attributes": {"type": "Account"}, "Id": "001", "Name": "Acme"}
        fake_server.route("GET", f"{PREFIX}/sobjects/Account/001", 200, record)

        assert await api_client.get_object("Account", "001") == record

    @pytest.mark.asyncio
    async def test_query_objects(self, api_client, fake_server):
        page = {"totalSize": 1, "done": True, "records": [{"Id": "001"}]}
        fake_server.route("GET", f"{PREFIX}/query", 200, page)

        query = QueryBuilder("Account").select("Id").where("Name", "Acme").limit(1)
        result = await api_client.query_objects(query)

        assert result == page
        sent = fake_server.requests[0]
        assert sent.url.params["q"] == "SELECT Id FROM Account WHERE Name=Acme LIMIT 1"

    @pytest.mark.asyncio
    async def test_metadata_calls(self, api_client, fake_server):
        fake_server.route(
            "GET",
            "/services/data",
            200,
            [{"label": "Summer '16", "url": "/services/data/v37.0", "version": "37.0"}],
        )
        fake_server.route("GET", PREFIX, 200, {"query": f"{PREFIX}/query"})
        fake_server.route("GET", f"{PREFIX}/sobjects", 200, {"sobjects": [{"name": "Account"}]})

        versions = await api_client.versions()
        assert [v.version for v in versions] == ["37.0"]
        assert await api_client.resources() == {"query": f"{PREFIX}/query"}
        assert (await api_client.describe_global())["sobjects"][0]["name"] == "Account"


class TestDispatchErrors:
    """Failure routing in do()."""

    @pytest.mark.asyncio
    async def test_missing_field_sends_nothing(self, api_client, fake_server):
        """Test that validation fails before authentication or dispatch."""
        with pytest.raises(MissingFieldError) as exc_info:
            await api_client.get_object("", "001")

        assert exc_info.value.field_name == "object_name"
        assert fake_server.requests == []
        assert fake_server.token_requests == []

    @pytest.mark.asyncio
    async def test_service_error_carries_all_sub_errors(self, api_client, fake_server):
        fake_server.route(
            "POST",
            f"{PREFIX}/sobjects/Account",
            400,
            [
                {"message": "Required fields are missing: [Name]", "errorCode": "REQUIRED_FIELD_MISSING"},
                {"message": "Bad value", "errorCode": "INVALID_FIELD"},
            ],
        )

        with pytest.raises(ServiceError) as exc_info:
            await api_client.create_object("Account", {"Industry": "Energy"})

        error = exc_info.value
        assert error.status_code == 400
        assert error.response.status_text == "Bad Request"
        assert [e.error_code for e in error.errors] == [
            "REQUIRED_FIELD_MISSING",
            "INVALID_FIELD",
        ]
        message = str(error)
        assert "400 Bad Request" in message
        assert "0: REQUIRED_FIELD_MISSING: Required fields are missing: [Name]" in message
        assert "1: INVALID_FIELD: Bad value" in message

    @pytest.mark.asyncio
    async def test_unknown_resource_is_service_error(self, api_client):
        with pytest.raises(ServiceError) as exc_info:
            await api_client.get_object("Account", "missing")
        assert exc_info.value.errors[0].error_code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_undecodable_error_body(self, api_client, fake_server):
        fake_server.route(
            "GET",
            f"{PREFIX}/sobjects/Account/001",
            handler=lambda request: httpx.Response(500, content=b"<html>boom</html>"),
        )
        with pytest.raises(MalformedPayloadError) as exc_info:
            await api_client.get_object("Account", "001")
        assert exc_info.value.status_code == 500
        assert "500" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unexpected_success_code(self, api_client, fake_server):
        fake_server.route("DELETE", f"{PREFIX}/sobjects/Account/001", 200, {"ok": True})
        with pytest.raises(UnexpectedStatusError) as exc_info:
            await api_client.delete_object("Account", "001")
        assert (exc_info.value.observed, exc_info.value.expected) == (200, 204)

    @pytest.mark.asyncio
    async def test_authentication_failure_aborts_call(self, api_client, fake_server):
        fake_server.token_status = 400
        fake_server.token_body = {"error": "invalid_client_id", "error_description": "client identifier invalid"}
        fake_server.route("GET", f"{PREFIX}/sobjects/Account/001", 200, {"Id": "001"})

        with pytest.raises(AuthenticationError):
            await api_client.get_object("Account", "001")
        assert fake_server.requests == []

    @pytest.mark.asyncio
    async def test_transport_failure_on_target(self, client_config, fake_server):
        def handler(request):
            if request.url.path == "/services/oauth2/token":
                return fake_server.handle(request)
            raise httpx.ReadTimeout("timed out", request=request)

        async with SObjectAPIClient(
            client_config, transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get_object("Account", "001")
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    @pytest.mark.asyncio
    async def test_do_accepts_operation_directly(self, api_client, fake_server):
        fake_server.route("GET", f"{PREFIX}/sobjects/Contact/003", 200, {"Id": "003"})
        op = GetOperation("Contact", "003")
        await api_client.do(op)
        assert op.result == {"Id": "003"}


class TestTokenLifecycle:
    """Lazy token exchange and re-authentication across calls."""

    @pytest.mark.asyncio
    async def test_token_reused_across_calls(self, api_client, fake_server):
        fake_server.route("GET", f"{PREFIX}/sobjects/Account/001", 200, {"Id": "001"})

        await api_client.get_object("Account", "001")
        await api_client.get_object("Account", "001")

        assert len(fake_server.token_requests) == 1
        assert {r.headers["Authorization"] for r in fake_server.requests} == {
            "Bearer test-access-token-1"
        }

    @pytest.mark.asyncio
    async def test_expired_token_triggers_second_exchange(self, client_config, fake_server):
        """Test that a 1s token lifetime forces a new exchange after a delay."""
        config = client_config.model_copy(update={"expires_in": 1})
        fake_server.route("GET", f"{PREFIX}/sobjects/Account/001", 200, {"Id": "001"})

        async with SObjectAPIClient(config, transport=fake_server.transport) as client:
            await client.get_object("Account", "001")
            assert len(fake_server.token_requests) == 1

            await asyncio.sleep(1.1)
            await client.get_object("Account", "001")

        assert len(fake_server.token_requests) == 2
        assert [r.headers["Authorization"] for r in fake_server.requests] == [
            "Bearer test-access-token-1",
            "Bearer test-access-token-2",
        ]

    @pytest.mark.asyncio
    async def test_close_drops_token(self, client_config, fake_server):
        fake_server.route("GET", f"{PREFIX}/sobjects/Account/001", 200, {"Id": "001"})
        client = SObjectAPIClient(client_config, transport=fake_server.transport)
        await client.get_object("Account", "001")
        await client.close()

        assert client.authenticator.token is None
        # A closed session is recreated on demand
        await client.get_object("Account", "001")
        await client.close()
        assert len(fake_server.token_requests) == 2


def test_config_host_trailing_slash_is_stripped():
    config = ClientConfig(host="https://na1.salesforce.com/")
    assert SObjectAPIClient(config).request_context().base_url() == (
        "https://na1.salesforce.com/services/data"
    )
