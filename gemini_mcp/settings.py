from __future__ import annotations

from functools import lru_cache
from typing import ClassVar

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(env_nested_delimiter="__", populate_by_name=True)

    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "google_generative_ai_api_key"),
        description="API key for the Gemini Developer API",
    )

    vertex_project: str | None = Field(default=None, description="Project ID for Google Vertex AI (Imagen upscale/edit)")
    vertex_location: str | None = Field(default=None, description="Location for Google Vertex AI")
    vertex_credentials_path: str | None = Field(default=None, description="Path to Google Cloud credentials JSON file")

    log_level: str = Field(default="INFO", description="Minimum level for server logs written to stderr")

    @property
    def is_configured(self) -> bool:
        """Whether the full tool set should be advertised."""
        return bool(self.gemini_api_key)

    @property
    def use_vertex(self) -> bool:
        """Determine if Imagen calls should go through Vertex AI."""
        return bool(self.vertex_project and self.vertex_location and self.vertex_credentials_path)


@lru_cache
def get_settings() -> Settings:
    return Settings()
