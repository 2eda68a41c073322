"""Wire models for the sObject REST API.

Pydantic models describe the JSON payloads exchanged with the token endpoint
and the data API. Returned records themselves are left as plain decoded JSON.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    """Successful response of the OAuth2 password grant."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1, description="Bearer token value")
    token_type: str = Field(default="Bearer", description="Authorization scheme")
    signature: Optional[str] = Field(None, description="Token signature")


class OAuthErrorResponse(BaseModel):
    """Error body returned by the token endpoint on a failed grant."""

    model_config = ConfigDict(extra="ignore")

    error: str = Field(default="unknown_error")
    error_description: str = Field(default="")


class CreateResult(BaseModel):
    """Envelope returned when an object is created."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Identifier of the new object")
    errors: List[Any] = Field(default_factory=list)
    success: bool = Field(default=True)


class ServiceErrorDetail(BaseModel):
    """One entry of the error array returned for a non-2xx response."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message: str = Field(default="")
    error_code: str = Field(default="", alias="errorCode")

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"


class APIVersionInfo(BaseModel):
    """An API version advertised by the service."""

    label: str
    url: str
    version: str


@dataclass
class ErrorResponse:
    """Decoded error payload of a non-2xx response on a data resource."""

    http_status: int
    status_text: str
    errors: List[ServiceErrorDetail] = field(default_factory=list)

    def describe(self) -> str:
        lines = [
            f"error response ({self.http_status} {self.status_text}) "
            f"with {len(self.errors)} errors:"
        ]
        for index, detail in enumerate(self.errors):
            lines.append(f"{index}: {detail}")
        return "\n".join(lines)
