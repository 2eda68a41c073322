"""Configuration management for sobject-client."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class ClientConfig(BaseModel):
    """Connection settings for one sObject API instance.

    Values are taken as given; out-of-range token lifetimes and API versions
    are normalized by the client, not here.
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(..., description="Instance URL, e.g. https://na1.salesforce.com")
    client_id: str = Field(default="", description="Connected app consumer key")
    client_secret: str = Field(default="", description="Connected app consumer secret")
    username: str = Field(default="", description="API user name")
    password: str = Field(
        default="", description="API user password (with security token appended)"
    )
    expires_in: int = Field(
        default=3600, description="Seconds an issued access token is trusted for"
    )
    api_version: int = Field(default=37, description="REST API version (8-37)")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")

    @field_validator("host")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ConfigManager:
    """Loads and saves ClientConfig as JSON."""

    DEFAULT_CONFIG_PATH = Path(".sobject-client/config.json")

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH
        self._config: Optional[ClientConfig] = None

    def load(self) -> ClientConfig:
        """Load configuration from file.

        Raises:
            ValueError: If the file is missing or its content is invalid
        """
        if not self.config_path.exists():
            raise ValueError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, "r") as f:
                data = json.load(f)
            self._config = ClientConfig(**data)
        except Exception as e:
            raise ValueError(f"Failed to load config from {self.config_path}: {e}") from e

        logger.debug(f"Loaded configuration from {self.config_path}")
        return self._config

    def save(self, config: Optional[ClientConfig] = None) -> None:
        """Save configuration to file."""
        if config is None:
            config = self._config

        if config is None:
            raise ValueError("No configuration to save")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            json.dump(config.model_dump(), f, indent=2)
        self._config = config
