"""
Generation settings, loaded from ROUTESPEC_* environment variables.

Usage:
    from routespec.config import get_settings

    json_path = get_settings().json_path
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeneratorSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ROUTESPEC_", extra="ignore")

    json_path: str = Field(
        default="/openapi.json",
        description="Path the synthesized route serves the OpenAPI document at",
    )
    openapi_version: str = Field(
        default="3.0.3",
        description="Value of the document's `openapi` field",
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level for the routespec logger",
    )

    @field_validator("json_path")
    @classmethod
    def _absolute_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("json_path must start with '/'")
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> GeneratorSettings:
    return GeneratorSettings()
