"""API Client Abstractions for sObject REST operations.

Provides the operation types, the SOQL query builder, token authentication
and the dispatching client. No raw HTTP calls are made outside this package.
"""

from .authenticator import Authenticator, TokenState
from .base_client import SObjectAPIClient, parse_error_response
from .errors import (
    APIClientError,
    AuthenticationError,
    MalformedPayloadError,
    MissingFieldError,
    ServiceError,
    TransportError,
    UnexpectedStatusError,
)
from .models import (
    APIVersionInfo,
    CreateResult,
    ErrorResponse,
    ServiceErrorDetail,
    TokenResponse,
)
from .operations import (
    CreateOperation,
    DeleteOperation,
    DescribeGlobalOperation,
    GetOperation,
    Operation,
    PreparedRequest,
    QueryOperation,
    ResourcesOperation,
    UpdateOperation,
    VersionsOperation,
)
from .query_builder import NullPriority, QueryBuilder, QueryState, WhereClause
from .request_context import MAX_API_VERSION, MIN_API_VERSION, RequestContext

__all__ = [
    # Client
    "SObjectAPIClient",
    "parse_error_response",
    # Authentication
    "Authenticator",
    "TokenState",
    # Errors
    "APIClientError",
    "AuthenticationError",
    "MalformedPayloadError",
    "MissingFieldError",
    "ServiceError",
    "TransportError",
    "UnexpectedStatusError",
    # Wire models
    "APIVersionInfo",
    "CreateResult",
    "ErrorResponse",
    "ServiceErrorDetail",
    "TokenResponse",
    # Operations
    "Operation",
    "PreparedRequest",
    "CreateOperation",
    "UpdateOperation",
    "DeleteOperation",
    "GetOperation",
    "QueryOperation",
    "VersionsOperation",
    "ResourcesOperation",
    "DescribeGlobalOperation",
    # Query builder
    "QueryBuilder",
    "QueryState",
    "WhereClause",
    "NullPriority",
    # Request context
    "RequestContext",
    "MIN_API_VERSION",
    "MAX_API_VERSION",
]
