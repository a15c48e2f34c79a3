from __future__ import annotations

import os
from ipaddress import IPv4Address
from typing import Literal

from pydantic import BaseModel, Field, IPvAnyAddress
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

CONFIG_PATH_ENV = "S3PROXY_CONFIG"
DEFAULT_CONFIG_PATH = "s3-proxy.yaml"


class ConfigError(Exception):
    """Raised when the configuration cannot be turned into a running gateway."""


def config_path() -> str:
    return os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH)


class BucketSettings(BaseModel):
    """Connection parameters for the backing bucket."""

    endpoint: str | None = None
    region: str
    bucket_name: str
    access_key: str | None = None
    secret_key: str | None = None
    addressing_style: Literal["auto", "virtual", "path"] = "path"

    def credentials(self) -> tuple[str | None, str | None]:
        """Return the access and secret key.

        Keys missing from the configuration are read from the
        ``AWS_S3_ACCESS_KEY_ID`` and ``AWS_S3_SECRET_KEY`` environment
        variables. When neither is set boto3 falls back to its own credential
        chain.
        """
        return (
            self.access_key or os.environ.get("AWS_S3_ACCESS_KEY_ID"),
            self.secret_key or os.environ.get("AWS_S3_SECRET_KEY"),
        )


class EndpointSettings(BaseModel):
    path: str = Field(min_length=1)
    bucket_path: str = Field(min_length=1)


class HttpSettings(BaseModel):
    bind: IPvAnyAddress = IPv4Address("127.0.0.1")
    port: int = Field(default=8000, ge=0, le=65535)


class GatewaySettings(BaseSettings):
    """Gateway configuration.

    Values are read, highest priority first, from keyword arguments, the
    environment (``S3PROXY_`` prefix, ``__`` between nested fields), a ``.env``
    file and the YAML file named by ``S3PROXY_CONFIG``.
    """

    model_config = SettingsConfigDict(
        env_prefix="S3PROXY_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    bucket: BucketSettings
    endpoints: list[EndpointSettings] = Field(default_factory=list)
    http: HttpSettings = Field(default_factory=HttpSettings)
    log_level: str = "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=config_path()),
        )


def load_settings() -> GatewaySettings:
    """Load the gateway settings from the environment and config file.

    Raises:
        pydantic.ValidationError: if required values are missing or invalid.
    """
    return GatewaySettings()
