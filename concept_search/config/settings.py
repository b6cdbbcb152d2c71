"""Application settings loaded from environment variables via pydantic-settings.

Values come from (highest priority first) environment variables, a ``.env``
file in the working directory, and the defaults below.  A field named
``search_result_limit`` reads ``SEARCH_RESULT_LIMIT``; fields that existed as
deployment flags before also accept their historical variable names
(``RESULT_LIMIT``, ``AUTOCOMPLETE_LIMIT``, ``PORT``, ...) through
``AliasChoices``.
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env(name: str, *legacy: str) -> AliasChoices:
    return AliasChoices(name, *legacy)


class Settings(BaseSettings):
    """Concept search service settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    # === Search Backend ===
    elasticsearch_endpoint: str = Field(
        default="http://localhost:9200",
        validation_alias=_env("elasticsearch_endpoint"),
    )
    elasticsearch_region: str = Field(
        default="local",
        validation_alias=_env("elasticsearch_region"),
    )
    # "aws" signs every backend request with SigV4 credentials from the
    # default botocore credential chain.
    auth: Literal["none", "aws"] = Field(default="none", validation_alias=_env("auth"))
    elasticsearch_default_index: str = Field(
        default="concepts",
        validation_alias=_env("elasticsearch_default_index"),
    )
    elasticsearch_extended_index: str = Field(
        default="all-concepts",
        validation_alias=_env(
            "elasticsearch_extended_index", "ELASTICSEARCH_EXTENDED_SEARCH_INDEX"
        ),
    )
    elasticsearch_trace: bool = Field(
        default=False,
        validation_alias=_env("elasticsearch_trace"),
    )
    backend_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        validation_alias=_env("backend_timeout_seconds"),
    )
    backend_max_retries: int = Field(
        default=3,
        ge=0,
        validation_alias=_env("backend_max_retries"),
    )
    backend_setup_retry_seconds: float = Field(
        default=60.0,
        gt=0,
        validation_alias=_env("backend_setup_retry_seconds"),
    )

    # === Result Limits ===
    search_result_limit: int = Field(
        default=50,
        gt=0,
        validation_alias=_env("search_result_limit", "RESULT_LIMIT"),
    )
    autocomplete_result_limit: int = Field(
        default=10,
        gt=0,
        validation_alias=_env("autocomplete_result_limit", "AUTOCOMPLETE_LIMIT"),
    )
    max_ids_limit: int = Field(
        default=1000,
        gt=0,
        validation_alias=_env("max_ids_limit"),
    )

    # === App Config ===
    app_name: str = Field(default="Concept Search API", validation_alias=_env("app_name"))
    app_system_code: str = Field(default="up-csa", validation_alias=_env("app_system_code"))
    app_host: str = Field(default="0.0.0.0", validation_alias=_env("app_host"))
    app_port: int = Field(default=8080, validation_alias=_env("app_port", "PORT"))
    app_env: str = Field(default="development", validation_alias=_env("app_env"))
    log_level: str = Field(default="INFO", validation_alias=_env("log_level"))

    @property
    def uses_aws_auth(self) -> bool:
        return self.auth == "aws"
