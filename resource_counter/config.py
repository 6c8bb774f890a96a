"""Configuration management for the AWS Resource Counter.

This module handles loading and validating configuration from environment
variables with sensible defaults. Command-line flags override these values.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.enums import NodeCountMode


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for a single-region run against the
    default credential chain. They can also be set in a .env file.
    """

    # AWS Configuration
    aws_profile: Optional[str] = Field(
        default=None,
        description="AWS profile to use (default credential chain if unset)",
        validation_alias="AWS_PROFILE"
    )
    aws_region: Optional[str] = Field(
        default=None,
        description="Region override (profile region, then us-east-1, if unset)",
        validation_alias=AliasChoices("AWS_REGION", "AWS_DEFAULT_REGION")
    )
    boto_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Maximum attempts per AWS call (adaptive retry mode)",
        validation_alias="BOTO_MAX_ATTEMPTS"
    )
    boto_connect_timeout: int = Field(
        default=10,
        ge=1,
        description="Connect timeout for AWS calls in seconds",
        validation_alias="BOTO_CONNECT_TIMEOUT"
    )
    boto_read_timeout: int = Field(
        default=30,
        ge=1,
        description="Read timeout for AWS calls in seconds",
        validation_alias="BOTO_READ_TIMEOUT"
    )

    # Counting Configuration
    all_regions: bool = Field(
        default=False,
        description="Count across every enabled region",
        validation_alias="ALL_REGIONS"
    )
    node_count_mode: NodeCountMode = Field(
        default=NodeCountMode.DESIRED,
        description="EKS node source: 'desired' (node group scaling config) or 'live' (cluster API)",
        validation_alias="NODE_COUNT_MODE"
    )
    max_concurrent_regions: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Regions counted at the same time (1 = sequential)",
        validation_alias="MAX_CONCURRENT_REGIONS"
    )
    node_page_size: int = Field(
        default=500,
        ge=1,
        description="Nodes requested per page from a cluster's Kubernetes API",
        validation_alias="NODE_PAGE_SIZE"
    )

    # Output Configuration
    output_file: Optional[str] = Field(
        default=None,
        description="CSV file receiving one row per run",
        validation_alias="OUTPUT_FILE"
    )
    append_output: bool = Field(
        default=False,
        description="Append to the output file instead of replacing it",
        validation_alias="APPEND_OUTPUT"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="LOG_LEVEL"
    )
    trace_file: Optional[str] = Field(
        default=None,
        description="File receiving botocore debug traces of every AWS call",
        validation_alias="TRACE_FILE"
    )

    # CloudWatch Configuration
    cloudwatch_enabled: bool = Field(
        default=False,
        description="Enable CloudWatch logging",
        validation_alias="CLOUDWATCH_ENABLED"
    )
    cloudwatch_log_group: str = Field(
        default="/aws-resource-counter",
        description="CloudWatch log group name",
        validation_alias="CLOUDWATCH_LOG_GROUP"
    )
    cloudwatch_log_stream: Optional[str] = Field(
        default=None,
        description="CloudWatch log stream name (auto-generated if not set)",
        validation_alias="CLOUDWATCH_LOG_STREAM"
    )

    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix for environment variables
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def get_settings() -> Settings:
    """
    Get application settings.

    Loads settings from environment variables and .env file.

    Returns:
        Settings instance with all configuration values
    """
    return Settings()


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def settings() -> Settings:
    """
    Get the global settings instance.

    Creates the settings instance on first call and caches it.

    Returns:
        Global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings
