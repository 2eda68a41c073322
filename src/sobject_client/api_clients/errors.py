"""Exceptions raised by the sObject API client.

Every failure of a dispatched operation surfaces as one of these, all rooted
at APIClientError so callers can catch the whole family at once.
"""

from typing import Optional

from .models import ErrorResponse


class APIClientError(Exception):
    """Base exception for API client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MissingFieldError(APIClientError):
    """Exception raised when an operation lacks a required field.

    Raised while the request is being built, so nothing is sent.
    """

    def __init__(self, field_name: str):
        super().__init__(f"missing required field: {field_name}")
        self.field_name = field_name


class AuthenticationError(APIClientError):
    """Exception raised when the token exchange fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ):
        super().__init__(message, status_code)
        self.error = error
        self.error_description = error_description


class UnexpectedStatusError(APIClientError):
    """Exception raised when a response code differs from the expected one."""

    def __init__(self, operation: str, observed: int, expected: int):
        super().__init__(
            f"{operation} operation can't handle response with code {observed}, "
            f"expect {expected}",
            observed,
        )
        self.operation = operation
        self.observed = observed
        self.expected = expected


class ServiceError(APIClientError):
    """Exception raised when the service answers with an error payload."""

    def __init__(self, response: ErrorResponse):
        super().__init__(response.describe(), response.http_status)
        self.response = response

    @property
    def errors(self):
        return self.response.errors


class MalformedPayloadError(APIClientError):
    """Exception raised when a request or response body is not valid JSON."""

    pass


class TransportError(APIClientError):
    """Exception raised when the HTTP transport itself fails."""

    pass
