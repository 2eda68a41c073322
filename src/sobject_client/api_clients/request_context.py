"""Request context: host plus API version, formatted into resource URLs."""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus

logger = logging.getLogger(__name__)

MIN_API_VERSION = 8
MAX_API_VERSION = 37


def is_api_version_valid(version: int) -> bool:
    return MIN_API_VERSION <= version <= MAX_API_VERSION


def _out_of_bound_message(version: int) -> str:
    return (
        f"API version {version} is out of bound "
        f"[{MIN_API_VERSION}, {MAX_API_VERSION}], using {MAX_API_VERSION} instead"
    )


@dataclass(frozen=True)
class RequestContext:
    """Immutable (host, api_version) pair.

    An api_version outside [MIN_API_VERSION, MAX_API_VERSION] is replaced
    with MAX_API_VERSION on construction.

    Assuming host is "https://instance.salesforce.com" and version 36:

        base_url()                        .../services/data
        version_url()                     .../services/data/v36.0
        sobjects_url()                    .../services/data/v36.0/sobjects
        object_collection_url("User")     .../v36.0/sobjects/User
        object_url("User", "005xx")       .../v36.0/sobjects/User/005xx
        query_url("SELECT Id FROM User")  .../v36.0/query?q=SELECT+Id+FROM+User
    """

    host: str
    api_version: int = MAX_API_VERSION

    def __post_init__(self):
        if not is_api_version_valid(self.api_version):
            logger.warning(_out_of_bound_message(self.api_version))
            object.__setattr__(self, "api_version", MAX_API_VERSION)

    @classmethod
    def create(
        cls, host: str, api_version: int, log: Optional[logging.Logger] = None
    ) -> "RequestContext":
        """Build a context, replacing an out-of-range version with the maximum."""
        if not is_api_version_valid(api_version):
            (log or logger).warning(_out_of_bound_message(api_version))
            api_version = MAX_API_VERSION
        return cls(host=host, api_version=api_version)

    def base_url(self) -> str:
        return f"{self.host}/services/data"

    def version_url(self) -> str:
        return f"{self.base_url()}/v{self.api_version}.0"

    def sobjects_url(self) -> str:
        return f"{self.version_url()}/sobjects"

    def object_collection_url(self, object_name: str) -> str:
        return f"{self.sobjects_url()}/{object_name}"

    def object_url(self, object_name: str, object_id: str) -> str:
        return f"{self.object_collection_url(object_name)}/{object_id}"

    def query_url(self, soql: str) -> str:
        return f"{self.version_url()}/query?q={quote_plus(soql)}"
