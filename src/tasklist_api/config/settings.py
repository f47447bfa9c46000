# src/tasklist_api/config/settings.py
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Single source of truth for the application settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from tasklist_api.config.settings import get_settings
        settings = get_settings()
        port = settings.port
    """

    # Application Settings
    app_name: str = Field(
        default="tasklist-app",
        description="Application name, also used as the managed process name"
    )

    # Deployment Mode
    deployment_mode: str = Field(
        default="local-dev",
        description="Deployment mode: local-dev, aws-mock, or aws-prod"
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Interface the HTTP server binds to"
    )

    port: int = Field(
        default=3000,
        description="Port the HTTP server listens on"
    )

    # AWS Core Settings
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_DEFAULT_REGION"
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        alias="AWS_ACCESS_KEY_ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        alias="AWS_SECRET_ACCESS_KEY"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator('deployment_mode', mode='before')
    @classmethod
    def normalize_deployment_mode(cls, v):
        """Normalize deployment mode values for backwards compatibility."""
        if v:
            mode_mapping = {
                "local-mock": "local-dev",
                "cloud": "aws-prod",
            }
            return mode_mapping.get(v, v)
        return v

    @field_validator('deployment_mode')
    @classmethod
    def validate_deployment_mode(cls, v):
        """Validate deployment mode is one of the allowed values."""
        valid_modes = ["local-dev", "aws-mock", "aws-prod"]
        if v not in valid_modes:
            raise ValueError(f"Invalid deployment_mode: {v}. Must be one of {valid_modes}")
        return v

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper()

    @field_validator('aws_endpoint_url')
    @classmethod
    def set_endpoint_url_based_on_mode(cls, v, info: ValidationInfo):
        """Auto-set endpoint URL for the mock mode if not explicitly provided."""
        if v is None and info.data.get('deployment_mode') == "aws-mock":
            return "http://localhost:5000"
        return v

    @field_validator('aws_access_key_id', 'aws_secret_access_key')
    @classmethod
    def set_mock_credentials_for_local_modes(cls, v, info: ValidationInfo):
        """Auto-set mock credentials for local modes if not provided."""
        if v is None and info.data.get('deployment_mode') in ["local-dev", "aws-mock"]:
            return "mock"
        return v

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=(".env", ".env.local-dev", ".env.aws-mock", ".env.aws-prod"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        validate_default=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
