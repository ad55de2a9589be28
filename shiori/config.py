"""
Configuration management for the Shiori trip planner.
Uses Pydantic Settings to load configuration from environment variables.
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Trip defaults
    default_trip_title: str = Field(
        default="New Trip",
        description="Title given to a freshly created empty trip"
    )

    # URL persistence
    url_data_param: str = Field(
        default="data",
        description="Query parameter that carries the encoded trip"
    )
    share_origin: str = Field(
        default="http://localhost:3000",
        description="Origin used when building share URLs without an explicit origin"
    )


# Global settings instance
settings = Settings()
