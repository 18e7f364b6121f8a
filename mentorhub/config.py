from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices, field_validator
from typing import Optional, List, Union, Any

from urllib.parse import urlparse

from .constants import (
    ASSESSMENT_TOTAL_QUESTIONS,
    DEFAULT_API_BASE_URL,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_ERROR_LOG_FILE_PATH,
    DEFAULT_GENERATION_MODEL,
    DEFAULT_HTTP_CONNECT_TIMEOUT,
    DEFAULT_HTTP_POOL_TIMEOUT,
    DEFAULT_HTTP_READ_TIMEOUT,
    DEFAULT_HTTP_WRITE_TIMEOUT,
    DEFAULT_LOG_FILE_PATH,
    DEFAULT_MAX_RETRIES,
    DEFAULT_OPENAI_BASE_URL,
    DEFAULT_POOL_KEEPALIVE_EXPIRY_SECONDS,
    DEFAULT_POOL_MAX_CONNECTIONS,
    DEFAULT_POOL_MAX_KEEPALIVE_CONNECTIONS,
    DEFAULT_RETRY_BASE_DELAY_SECONDS,
)
from .domain.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", env_prefix="", case_sensitive=False
    )

    # Required
    openai_api_key: str = Field(
        default=...,
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
    )
    generation_model_name: str = Field(
        default=DEFAULT_GENERATION_MODEL,
        validation_alias=AliasChoices("GENERATION_MODEL_NAME", "generation_model_name"),
    )

    # Optional with defaults
    base_url: str = Field(
        default=DEFAULT_OPENAI_BASE_URL,
        validation_alias=AliasChoices("OPENAI_BASE_URL", "base_url"),
    )
    app_name: str = "MentorHub"
    app_version: str = "0.1.0"
    log_level: str = Field(
        default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level")
    )
    log_file_path: Optional[str] = Field(
        default=DEFAULT_LOG_FILE_PATH,
        validation_alias=AliasChoices("LOG_FILE_PATH", "log_file_path"),
    )
    error_log_file_path: Optional[str] = Field(
        default=DEFAULT_ERROR_LOG_FILE_PATH,
        validation_alias=AliasChoices("ERROR_LOG_FILE_PATH", "error_log_file_path"),
    )
    log_pretty_console: bool = Field(
        default=False,
        validation_alias=AliasChoices("LOG_PRETTY_CONSOLE", "log_pretty_console"),
    )
    host: str = "127.0.0.1"
    port: int = Field(default=8000, validation_alias=AliasChoices("PORT", "port"))
    reload: bool = False

    enable_cors: bool = Field(
        default=False, validation_alias=AliasChoices("ENABLE_CORS", "enable_cors")
    )
    cors_allow_origins: Union[List[str], str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "cors_allow_origins"),
    )
    cors_allow_methods: Union[List[str], str] = Field(
        default_factory=lambda: ["GET", "POST", "OPTIONS"],
        validation_alias=AliasChoices("CORS_ALLOW_METHODS", "cors_allow_methods"),
    )
    cors_allow_headers: Union[List[str], str] = Field(
        default_factory=lambda: ["Authorization", "Content-Type", "X-Requested-With"],
        validation_alias=AliasChoices("CORS_ALLOW_HEADERS", "cors_allow_headers"),
    )

    redact_log_fields: Union[List[str], str] = Field(
        default_factory=lambda: [
            "openai_api_key",
            "data_store_api_key",
            "authorization",
            "apikey",
            "correct_answer",
            "correctanswer",
        ],
        validation_alias=AliasChoices("REDACT_LOG_FIELDS", "redact_log_fields"),
    )

    # Outbound HTTP client
    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        validation_alias=AliasChoices("API_BASE_URL", "api_base_url"),
    )
    http_cache_ttl_s: float = Field(
        default=DEFAULT_CACHE_TTL_SECONDS,
        validation_alias=AliasChoices("HTTP_CACHE_TTL_S", "http_cache_ttl_s"),
    )
    http_max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        validation_alias=AliasChoices("HTTP_MAX_RETRIES", "http_max_retries"),
    )
    http_retry_base_delay: float = Field(
        default=DEFAULT_RETRY_BASE_DELAY_SECONDS,
        validation_alias=AliasChoices("HTTP_RETRY_BASE_DELAY", "http_retry_base_delay"),
    )

    # Data store; empty URL selects the in-memory store
    data_store_url: str = Field(
        default="", validation_alias=AliasChoices("DATA_STORE_URL", "data_store_url")
    )
    data_store_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("DATA_STORE_API_KEY", "data_store_api_key"),
    )

    # Assessment
    assessment_total_questions: int = Field(
        default=ASSESSMENT_TOTAL_QUESTIONS,
        validation_alias=AliasChoices(
            "ASSESSMENT_TOTAL_QUESTIONS", "assessment_total_questions"
        ),
    )

    provider_max_retries: int = Field(
        default=2,
        validation_alias=AliasChoices("PROVIDER_MAX_RETRIES", "provider_max_retries"),
    )

    # Connection pool configuration
    pool_max_keepalive_connections: int = Field(
        default=DEFAULT_POOL_MAX_KEEPALIVE_CONNECTIONS,
        validation_alias=AliasChoices(
            "POOL_MAX_KEEPALIVE_CONNECTIONS", "pool_max_keepalive_connections"
        ),
    )
    pool_max_connections: int = Field(
        default=DEFAULT_POOL_MAX_CONNECTIONS,
        validation_alias=AliasChoices("POOL_MAX_CONNECTIONS", "pool_max_connections"),
    )
    pool_keepalive_expiry: int = Field(
        default=DEFAULT_POOL_KEEPALIVE_EXPIRY_SECONDS,
        validation_alias=AliasChoices("POOL_KEEPALIVE_EXPIRY", "pool_keepalive_expiry"),
    )

    # HTTP timeout configuration
    http_connect_timeout: float = Field(
        default=DEFAULT_HTTP_CONNECT_TIMEOUT,
        validation_alias=AliasChoices("HTTP_CONNECT_TIMEOUT", "http_connect_timeout"),
    )
    http_read_timeout: float = Field(
        default=DEFAULT_HTTP_READ_TIMEOUT,
        validation_alias=AliasChoices("HTTP_READ_TIMEOUT", "http_read_timeout"),
    )
    http_write_timeout: float = Field(
        default=DEFAULT_HTTP_WRITE_TIMEOUT,
        validation_alias=AliasChoices("HTTP_WRITE_TIMEOUT", "http_write_timeout"),
    )
    http_pool_timeout: float = Field(
        default=DEFAULT_HTTP_POOL_TIMEOUT,
        validation_alias=AliasChoices("HTTP_POOL_TIMEOUT", "http_pool_timeout"),
    )

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        "redact_log_fields",
    )
    @classmethod
    def parse_comma_separated(cls, v: Union[List[str], str]) -> List[str]:
        """Parse comma-separated string values into lists for configuration fields.

        Handles both string inputs (splitting by commas) and already-list inputs.
        Empty strings are converted to empty lists.
        """
        if isinstance(v, str):
            if v.strip() == "":
                return []
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    def __init__(self, **kwargs: Any) -> None:
        """Initialize settings object and perform validation.

        Raises:
            ConfigurationError: If required settings are missing or invalid
        """
        super().__init__(**kwargs)
        self._validate_required()
        self._validate_urls()

    def _validate_required(self) -> None:
        """Validate that required settings are configured."""
        errors = []

        if not (self.openai_api_key and self.openai_api_key.strip()):
            errors.append(
                "API key is required. Set OPENAI_API_KEY in your environment or .env."
            )

        if not (self.generation_model_name and self.generation_model_name.strip()):
            errors.append(
                "GENERATION_MODEL_NAME is required. Set it in your environment or .env."
            )

        if self.assessment_total_questions < 1:
            errors.append("ASSESSMENT_TOTAL_QUESTIONS must be at least 1.")

        if self.http_max_retries < 0:
            errors.append("HTTP_MAX_RETRIES must be non-negative.")

        if self.http_cache_ttl_s <= 0:
            errors.append("HTTP_CACHE_TTL_S must be positive.")

        if errors:
            raise ConfigurationError("\n".join(errors))

    def _validate_urls(self) -> None:
        """Validates that OPENAI_BASE_URL and DATA_STORE_URL are http(s) URLs."""
        errors = []
        for key, value in (
            ("OPENAI_BASE_URL", self.base_url),
            ("DATA_STORE_URL", self.data_store_url),
        ):
            if not value:
                continue
            parsed = urlparse(value)
            if parsed.scheme.lower() not in ("http", "https") or not parsed.hostname:
                errors.append(f"{key} must be an absolute http(s) URL.")
        if errors:
            raise ConfigurationError("\n".join(errors), config_key="url")
