"""Configuration via pydantic-settings: 12-factor app style."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """recordfilter configuration: loaded from env vars / .env file."""

    default_mode: str = Field(default="all", description="Logic mode when none is given (all|any|custom|related|none)")
    related_field: str = Field(default="listing__c", description="Relationship-key field used by Related mode")
    lowercase_fields: bool = Field(default=True, description="Lower-case field names when decoding stored mappings")
    max_rows: int = Field(default=100, description="Row cap for table output")
    log_level: str = Field(default="WARNING", description="Root log level for the CLI")

    class Config:
        env_prefix = "RECORDFILTER_"
        env_file = ".env"


settings = Settings()
