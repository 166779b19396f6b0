"""
Configuration for the gateway connection and the message bus.

Both models are frozen. from_env() reads ``TPI_*`` and ``BUS_*``
variables; explicit keyword arguments take precedence.
"""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tpibridge.protocol.constants import ProtocolConstants

_TPI_ENV_MAP = {
    "TPI_HOST": "host",
    "TPI_PORT": "port",
    "TPI_PASSWORD": "password",
    "TPI_ERROR_RETRY_DELAY": "error_retry_delay",
    "TPI_CLOSE_RETRY_DELAY": "close_retry_delay",
    "TPI_ENCODING": "encoding",
    "TPI_CONNECT_TIMEOUT": "connect_timeout",
}

_BUS_ENV_MAP = {
    "BUS_HOST": "host",
    "BUS_PORT": "port",
    "BUS_CLIENT_ID": "client_id",
    "BUS_USERNAME": "username",
    "BUS_PASSWORD": "password",
    "BUS_KEEPALIVE": "keepalive",
}


def _from_env(env_map: dict[str, str], overrides: dict[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for env_key, field_name in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            values[field_name] = value
    values.update(overrides)
    return values


class TPIConfig(BaseModel):
    """
    Gateway connection settings.

    Example:
        >>> config = TPIConfig(host="192.168.1.20", password="user")
        >>> config.port
        4025
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1)
    port: int = Field(default=ProtocolConstants.DEFAULT_PORT, ge=1, le=65535)
    password: str = Field(min_length=1, max_length=ProtocolConstants.PASSWORD_MAX_LENGTH)
    error_retry_delay: float = Field(default=ProtocolConstants.ERROR_RETRY_DELAY, ge=0)
    close_retry_delay: float = Field(default=ProtocolConstants.CLOSE_RETRY_DELAY, ge=0)
    encoding: str = ProtocolConstants.DEFAULT_ENCODING
    connect_timeout: float = Field(default=ProtocolConstants.DEFAULT_CONNECT_TIMEOUT, gt=0)

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            "".encode(value)
        except LookupError:
            raise ValueError(f"Unknown encoding: {value}") from None
        return value

    @classmethod
    def from_env(cls, **overrides: Any) -> TPIConfig:
        """
        Create configuration from ``TPI_*`` environment variables.

        Raises:
            pydantic.ValidationError: If required values are missing or invalid.
        """
        return cls(**_from_env(_TPI_ENV_MAP, overrides))

    def __repr__(self) -> str:
        return f"TPIConfig(host={self.host!r}, port={self.port}, password='***')"


class BusConfig(BaseModel):
    """MQTT broker settings."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1)
    port: int = Field(default=1883, ge=1, le=65535)
    client_id: str = ""
    username: str | None = None
    password: str | None = None
    keepalive: int = Field(default=60, gt=0)

    @classmethod
    def from_env(cls, **overrides: Any) -> BusConfig:
        """Create configuration from ``BUS_*`` environment variables."""
        return cls(**_from_env(_BUS_ENV_MAP, overrides))
