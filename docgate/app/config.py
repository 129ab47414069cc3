"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # Remote store / inference
    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-4o-mini"
    file_search_store_name: str = "my-documents-store"

    # Local files
    users_file: str = "users.json"
    prompt_file: str = "prompt.md"
    upload_dir: str = "uploads"

    # Sessions
    session_secret: SecretStr | None = None
    session_cookie_name: str = "auth_token"
    session_max_age_days: int = 7
    cookie_secure: bool = False

    # Uploads (bytes)
    max_upload_bytes: int = 100 * 1024 * 1024

    # Long-running operation polling
    poll_interval_ms: int = 1000
    poll_max_attempts: int = 600

    # Remote catalog pagination
    pagination_page_size: int = 20
    pagination_max_pages: int = 500

    @property
    def session_max_age_ms(self) -> int:
        return self.session_max_age_days * 24 * 60 * 60 * 1000

    def missing_for_startup(self) -> list[str]:
        """Return the environment variables that must be set before serving."""
        missing = []
        if self.openai_api_key is None or not self.openai_api_key.get_secret_value():
            missing.append("OPENAI_API_KEY")
        return missing

    def validate_for_startup(self) -> None:
        """Raise if required settings are missing.

        Raises:
            RuntimeError: Listing every missing environment variable
        """
        missing = self.missing_for_startup()
        if missing:
            raise RuntimeError(
                f"Missing environment variables: {', '.join(missing)}. "
                "Define them in the environment or in the .env file."
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
