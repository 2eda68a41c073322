"""
Shared pytest fixtures for sobject-client tests.

Provides an in-process fake of the sObject REST service, served through
httpx.MockTransport, so client tests exercise real httpx requests and
responses without opening sockets.
"""

import json
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio

from sobject_client.api_clients import SObjectAPIClient
from sobject_client.config import ClientConfig

TEST_HOST = "https://test.my.salesforce.com"


class FakeSObjectServer:
    """In-memory sObject service answering token and data requests.

    Token requests are answered from `token_status`/`token_body`; data
    requests are routed to handlers registered with `route()`. Every request
    is recorded in `requests` for assertions.
    """

    def __init__(self, access_token: str = "test-access-token"):
        self.access_token = access_token
        self.token_status = 200
        self.token_body: Any = None
        self.token_requests: List[httpx.Request] = []
        self.requests: List[httpx.Request] = []
        self._routes: Dict[tuple, Callable[[httpx.Request], httpx.Response]] = {}
        self._issued = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def route(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        body: Any = None,
        handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    ) -> None:
        """Register a canned response (or handler) for METHOD + PATH."""

        def _canned(request: httpx.Request) -> httpx.Response:
            if body is None:
                return httpx.Response(status_code)
            return httpx.Response(status_code, json=body)

        self._routes[(method, path)] = handler or _canned

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/services/oauth2/token":
            return self._handle_token(request)

        self.requests.append(request)
        handler = self._routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(
                404,
                json=[{"message": "The requested resource does not exist", "errorCode": "NOT_FOUND"}],
            )
        return handler(request)

    def _handle_token(self, request: httpx.Request) -> httpx.Response:
        self.token_requests.append(request)
        if self.token_body is not None or self.token_status != 200:
            if isinstance(self.token_body, (bytes, str)):
                return httpx.Response(self.token_status, content=self.token_body)
            return httpx.Response(self.token_status, json=self.token_body)

        self._issued += 1
        return httpx.Response(
            200,
            json={
                "access_token": f"{self.access_token}-{self._issued}",
                "token_type": "Bearer",
                "signature": "sig",
                "instance_url": TEST_HOST,
            },
        )

    @staticmethod
    def form_of(request: httpx.Request) -> Dict[str, str]:
        parsed = parse_qs(request.content.decode("utf-8"))
        return {key: values[0] for key, values in parsed.items()}

    @staticmethod
    def json_of(request: httpx.Request) -> Any:
        return json.loads(request.content.decode("utf-8"))


@pytest.fixture
def client_config() -> ClientConfig:
    """Provide valid test configuration."""
    return ClientConfig(
        host=TEST_HOST,
        client_id="test-client-id",
        client_secret="test-client-secret",
        username="testuser@example.com",
        password="testpass123",
        expires_in=3600,
        api_version=36,
    )


@pytest.fixture
def fake_server() -> FakeSObjectServer:
    return FakeSObjectServer()


@pytest_asyncio.fixture
async def api_client(client_config, fake_server):
    """SObjectAPIClient wired to the fake server."""
    client = SObjectAPIClient(client_config, transport=fake_server.transport)
    try:
        yield client
    finally:
        await client.close()
