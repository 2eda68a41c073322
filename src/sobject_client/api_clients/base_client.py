"""Base sObject API Client.

Dispatches operations: builds each request against a fresh request context,
sends it with a bearer token, and routes the response either to the
operation's handler or to the error payload parser.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..config import ClientConfig
from .authenticator import DEFAULT_TOKEN_LIFETIME_SECONDS, Authenticator
from .errors import MalformedPayloadError, ServiceError, TransportError
from .models import APIVersionInfo, ErrorResponse, ServiceErrorDetail
from .operations import (
    CreateOperation,
    DeleteOperation,
    DescribeGlobalOperation,
    GetOperation,
    Operation,
    QueryOperation,
    ResourcesOperation,
    UpdateOperation,
    VersionsOperation,
)
from .query_builder import QueryBuilder
from .request_context import RequestContext


def parse_error_response(response: httpx.Response) -> ErrorResponse:
    """Decode the `[{"message": ..., "errorCode": ...}]` body of a failed call.

    Raises:
        MalformedPayloadError: If the body is not such an array
    """
    status_text = response.reason_phrase
    try:
        data = response.json()
        if not isinstance(data, list):
            raise ValueError(f"expected an array, got {type(data).__name__}")
        errors = [ServiceErrorDetail.model_validate(item) for item in data]
    except (ValueError, UnicodeDecodeError, ValidationError) as e:
        raise MalformedPayloadError(
            f"Undecodable error response ({response.status_code} {status_text}): {e}",
            response.status_code,
        ) from e

    return ErrorResponse(
        http_status=response.status_code, status_text=status_text, errors=errors
    )


class SObjectAPIClient:
    """API client for sObject create/update/delete/get/query operations."""

    def __init__(
        self,
        config: ClientConfig,
        logger: Optional[logging.Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client, normalizing token lifetime and API version.

        Args:
            config: Host, credentials and API settings
            logger: Logger used by the client and its authenticator
            transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self._transport = transport
        self._session: Optional[httpx.AsyncClient] = None

        token_lifetime = config.expires_in
        if token_lifetime <= 0:
            self.logger.warning(
                f"Invalid token lifetime {token_lifetime}s, "
                f"using {DEFAULT_TOKEN_LIFETIME_SECONDS}s instead"
            )
            token_lifetime = DEFAULT_TOKEN_LIFETIME_SECONDS
        self.logger.debug(f"Tokens expire after {token_lifetime}s and auto-refresh")

        context = RequestContext.create(config.host, config.api_version, self.logger)
        self.host = context.host
        self.api_version = context.api_version

        self.authenticator = Authenticator(
            config, token_lifetime=token_lifetime, logger=self.logger
        )

    @property
    def session(self) -> httpx.AsyncClient:
        """Get or create the HTTP session."""
        if self._session is None or self._session.is_closed:
            timeout = self.config.timeout
            timeouts = httpx.Timeout(
                connect=min(10.0, timeout), read=timeout, write=timeout, pool=5.0
            )
            self._session = httpx.AsyncClient(
                timeout=timeouts,
                transport=self._transport,
                follow_redirects=True,
                verify=True,
            )
        return self._session

    def request_context(self) -> RequestContext:
        """Snapshot of the stored host and API version for a single call."""
        return RequestContext(host=self.host, api_version=self.api_version)

    async def do(self, operation: Operation) -> None:
        """Make, send and handle one operation.

        Raises:
            MissingFieldError: If the operation lacks a required field
            AuthenticationError: If the token exchange fails
            UnexpectedStatusError: If a 2xx status differs from the expected one
            ServiceError: If the service answers with a non-2xx status
            MalformedPayloadError: If a request or response body is not valid JSON
            TransportError: If the HTTP transport fails
        """
        prepared = operation.make(self.request_context())

        session = self.session
        headers = {
            "Content-Type": "application/json",
            "Authorization": await self.authenticator.authorization_header(session),
        }

        self.logger.debug(f"{prepared.method} {prepared.url}")
        try:
            response = await session.request(
                prepared.method, prepared.url, headers=headers, content=prepared.content
            )
        except httpx.HTTPError as e:
            raise TransportError(
                f"{prepared.method} {prepared.url} failed: {e}"
            ) from e

        if response.is_success:
            operation.handle(response)
            return

        error_response = parse_error_response(response)
        self.logger.debug(
            f"{operation.name} failed with HTTP {response.status_code}: "
            f"{len(error_response.errors)} errors"
        )
        raise ServiceError(error_response)

    async def create_object(self, object_name: str, payload: Any) -> str:
        """Create an object and return its new identifier."""
        op = CreateOperation(object_name=object_name, payload=payload)
        await self.do(op)
        if op.result is None:
            raise MalformedPayloadError("Create response carried no envelope")
        return op.result.id

    async def update_object(self, object_name: str, object_id: str, payload: Any) -> None:
        """Apply the fields of payload to an existing object."""
        await self.do(
            UpdateOperation(object_name=object_name, object_id=object_id, payload=payload)
        )

    async def delete_object(self, object_name: str, object_id: str) -> None:
        await self.do(DeleteOperation(object_name=object_name, object_id=object_id))

    async def get_object(self, object_name: str, object_id: str) -> Any:
        """Fetch one object and return its decoded JSON."""
        op = GetOperation(object_name=object_name, object_id=object_id)
        await self.do(op)
        return op.result

    async def query_objects(self, query: QueryBuilder) -> Any:
        """Run a SOQL query and return the decoded result page.

        The result has the service's shape, typically
        `{"totalSize": ..., "done": ..., "records": [...]}`.
        """
        op = QueryOperation(builder=query)
        await self.do(op)
        return op.result

    async def versions(self) -> List[APIVersionInfo]:
        """List the API versions the instance supports."""
        op = VersionsOperation()
        await self.do(op)
        return op.result

    async def resources(self) -> Dict[str, str]:
        """List resources available under the configured API version."""
        op = ResourcesOperation()
        await self.do(op)
        return op.result

    async def describe_global(self) -> Dict[str, Any]:
        """Describe the objects available to the API user."""
        op = DescribeGlobalOperation()
        await self.do(op)
        return op.result

    async def close(self) -> None:
        """Close HTTP session and drop the cached token."""
        if self._session and not self._session.is_closed:
            await self._session.aclose()
        self.authenticator.invalidate()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
