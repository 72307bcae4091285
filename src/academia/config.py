"""
Environment-based configuration using Pydantic Settings.

Every group reads its own prefix from the environment or a local .env file.
Missing jsonbin or LLM credentials are a supported mode: persistence and
flashcard generation are then disabled.
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class JsonBinSettings(BaseSettings):
    """Remote document store (jsonbin.io v3) settings."""

    model_config = SettingsConfigDict(
        env_prefix="JSONBIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: Optional[SecretStr] = Field(
        default=None,
        description="Master key sent in the X-Master-Key header",
    )

    bin_id: Optional[str] = Field(
        default=None,
        description="Id of the bin holding the organizer document",
    )

    base_url: str = Field(
        default="https://api.jsonbin.io/v3",
        description="API root, without trailing slash",
    )

    timeout: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout in seconds",
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.get_secret_value() and self.bin_id)


class SyncSettings(BaseSettings):
    """Debounced save settings."""

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debounce_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Quiet period after the last change before the state is uploaded",
    )


class LLMSettings(BaseSettings):
    """Flashcard generation model settings."""

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: Optional[SecretStr] = Field(
        default=None,
        description="Google API key for Gemini; generation is disabled without it",
    )

    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used to turn notes into flashcards",
    )

    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )


class ApplicationSettings(BaseSettings):
    """Terminal application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level",
    )

    hour_height: int = Field(
        default=64,
        ge=1,
        description="Pixel height of one hour in the timetable layout",
    )


class Settings(BaseSettings):
    """Main settings aggregating all configuration groups."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    jsonbin: JsonBinSettings = Field(default_factory=JsonBinSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    app: ApplicationSettings = Field(default_factory=ApplicationSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
