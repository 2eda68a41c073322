"""Operations: one unit of intent translated into one HTTP request/response.

Each operation validates its own fields and builds a PreparedRequest against
a RequestContext (make), then checks and decodes the successful response
(handle). An operation is used for exactly one dispatch.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ValidationError

from .errors import MalformedPayloadError, MissingFieldError, UnexpectedStatusError
from .models import APIVersionInfo, CreateResult
from .query_builder import QueryBuilder
from .request_context import RequestContext


@dataclass(frozen=True)
class PreparedRequest:
    """HTTP method, URL and optional JSON-encoded body."""

    method: str
    url: str
    content: Optional[bytes] = None


def encode_payload(payload: Any) -> bytes:
    """Serialize a dict or pydantic model into a JSON request body."""
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    try:
        return json.dumps(payload).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise MalformedPayloadError(f"Failed to encode request payload: {e}") from e


def decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedPayloadError(
            f"Failed to decode response body (HTTP {response.status_code}): {e}",
            response.status_code,
        ) from e


class Operation(ABC):
    """Base class for all operations."""

    name: str = "operation"
    expected_status: int = 200

    @abstractmethod
    def make(self, ctx: RequestContext) -> PreparedRequest:
        """Validate fields and build the request for the given context.

        Raises:
            MissingFieldError: If a required field is empty
            MalformedPayloadError: If the payload cannot be encoded
        """

    def handle(self, response: httpx.Response) -> None:
        """Check the status code, then decode the body when the operation needs it.

        Raises:
            UnexpectedStatusError: If the status differs from expected_status
            MalformedPayloadError: If the body cannot be decoded
        """
        if response.status_code != self.expected_status:
            raise UnexpectedStatusError(
                self.name, response.status_code, self.expected_status
            )
        self._decode(response)

    def _decode(self, response: httpx.Response) -> None:
        return None


@dataclass
class CreateOperation(Operation):
    object_name: str
    payload: Any
    result: Optional[CreateResult] = field(default=None, init=False)

    name = "create"
    expected_status = 201

    def make(self, ctx: RequestContext) -> PreparedRequest:
        if not self.object_name:
            raise MissingFieldError("object_name")
        if self.payload is None:
            raise MissingFieldError("payload")
        return PreparedRequest(
            "POST",
            ctx.object_collection_url(self.object_name),
            encode_payload(self.payload),
        )

    def _decode(self, response: httpx.Response) -> None:
        data = decode_body(response)
        try:
            self.result = CreateResult.model_validate(data)
        except ValidationError as e:
            raise MalformedPayloadError(
                f"Invalid create response envelope: {e}", response.status_code
            ) from e


@dataclass
class UpdateOperation(Operation):
    object_name: str
    object_id: str
    payload: Any

    name = "update"
    expected_status = 200

    def make(self, ctx: RequestContext) -> PreparedRequest:
        if not self.object_name:
            raise MissingFieldError("object_name")
        if not self.object_id:
            raise MissingFieldError("object_id")
        if self.payload is None:
            raise MissingFieldError("payload")
        return PreparedRequest(
            "PATCH",
            ctx.object_url(self.object_name, self.object_id),
            encode_payload(self.payload),
        )


@dataclass
class DeleteOperation(Operation):
    object_name: str
    object_id: str

    name = "delete"
    expected_status = 204

    def make(self, ctx: RequestContext) -> PreparedRequest:
        if not self.object_name:
            raise MissingFieldError("object_name")
        if not self.object_id:
            raise MissingFieldError("object_id")
        return PreparedRequest("DELETE", ctx.object_url(self.object_name, self.object_id))


@dataclass
class GetOperation(Operation):
    object_name: str
    object_id: str
    result: Any = field(default=None, init=False)

    name = "get"
    expected_status = 200

    def make(self, ctx: RequestContext) -> PreparedRequest:
        if not self.object_name:
            raise MissingFieldError("object_name")
        if not self.object_id:
            raise MissingFieldError("object_id")
        return PreparedRequest("GET", ctx.object_url(self.object_name, self.object_id))

    def _decode(self, response: httpx.Response) -> None:
        self.result = decode_body(response)


@dataclass
class QueryOperation(Operation):
    builder: QueryBuilder
    result: Any = field(default=None, init=False)

    name = "query"
    expected_status = 200

    def make(self, ctx: RequestContext) -> PreparedRequest:
        state = self.builder.build()
        if not state.object_name:
            raise MissingFieldError("object_name")
        if not state.select_fields:
            raise MissingFieldError("select_fields")
        return PreparedRequest("GET", ctx.query_url(state.render(self.builder.logger)))

    def _decode(self, response: httpx.Response) -> None:
        self.result = decode_body(response)


# Metadata operations


@dataclass
class VersionsOperation(Operation):
    result: List[APIVersionInfo] = field(default_factory=list, init=False)

    name = "versions"

    def make(self, ctx: RequestContext) -> PreparedRequest:
        return PreparedRequest("GET", ctx.base_url())

    def _decode(self, response: httpx.Response) -> None:
        data = decode_body(response)
        if not isinstance(data, list):
            raise MalformedPayloadError(
                f"Expected a list of versions, got {type(data).__name__}",
                response.status_code,
            )
        try:
            self.result = [APIVersionInfo.model_validate(item) for item in data]
        except ValidationError as e:
            raise MalformedPayloadError(
                f"Invalid version entry: {e}", response.status_code
            ) from e


@dataclass
class ResourcesOperation(Operation):
    result: Dict[str, str] = field(default_factory=dict, init=False)

    name = "resources"

    def make(self, ctx: RequestContext) -> PreparedRequest:
        return PreparedRequest("GET", ctx.version_url())

    def _decode(self, response: httpx.Response) -> None:
        data = decode_body(response)
        if not isinstance(data, dict):
            raise MalformedPayloadError(
                f"Expected a resource mapping, got {type(data).__name__}",
                response.status_code,
            )
        self.result = {str(key): str(value) for key, value in data.items()}


@dataclass
class DescribeGlobalOperation(Operation):
    result: Dict[str, Any] = field(default_factory=dict, init=False)

    name = "describe"

    def make(self, ctx: RequestContext) -> PreparedRequest:
        return PreparedRequest("GET", ctx.sobjects_url())

    def _decode(self, response: httpx.Response) -> None:
        data = decode_body(response)
        if not isinstance(data, dict):
            raise MalformedPayloadError(
                f"Expected an object description, got {type(data).__name__}",
                response.status_code,
            )
        self.result = data

