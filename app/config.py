from functools import lru_cache
from typing import List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="Recipe Reviews Service")
    cors_origins: List[AnyHttpUrl] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )
    store_service_base_url: AnyHttpUrl | None = Field(
        default=None
    )
    store_service_timeout: float = Field(
        default=10.0
    )
    store_service_token: str | None = Field(
        default=None
    )
    use_mock_data: bool = Field(
        default=True
    )
    reviews_table: str = Field(
        default="Reviews"
    )
    comments_table: str = Field(
        default="Comments"
    )

    model_config = SettingsConfigDict(env_prefix="REVIEWS_", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
