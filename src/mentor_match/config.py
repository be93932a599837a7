"""Configuration for mentor_match using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent.parent  # src/mentor_match/ → project root


class Settings(BaseSettings):
    """All settings, loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Azure OpenAI: content generation model
    # ------------------------------------------------------------------
    azure_openai_api_key: str = ""
    azure_openai_endpoint: str = ""
    azure_openai_api_version: str = "2025-01-01-preview"
    azure_openai_chat_deployment: str = "gpt-4o-mini"

    # Remote generation is skipped (templates only) when disabled or no key is set
    content_generation_enabled: bool = True

    # ------------------------------------------------------------------
    # Account (profile) service client
    # ------------------------------------------------------------------
    profile_service_url: str = "http://localhost:5000/api"
    profile_timeout_seconds: float = 10.0

    # ------------------------------------------------------------------
    # Local key-value store: "memory" or "sqlite"
    # ------------------------------------------------------------------
    kv_backend: str = "sqlite"
    kv_db_path: Path = _PROJECT_ROOT / "database" / "local_store.sqlite"

    # Raise instead of falling back to the anonymous namespace when a
    # use case touches user data while signed out
    strict_identity: bool = True

    # ------------------------------------------------------------------
    # Account service (server side)
    # ------------------------------------------------------------------
    user_db_path: Path = _PROJECT_ROOT / "database" / "users.sqlite"
    password_hash_iterations: int = 200_000

    # ------------------------------------------------------------------
    # Auth (JWT): set AUTH_ENABLED=false to disable for development
    # ------------------------------------------------------------------
    auth_enabled: bool = True
    jwt_secret: str = "dev-secret-change-in-production!!"
    jwt_expiry_hours: int = 24

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = "INFO"
    log_json: bool = False

    # ------------------------------------------------------------------
    # Observability: "off", "logfire" or "otel"
    # ------------------------------------------------------------------
    observability: str = "off"
    otel_service_name: str = "mentor-match-account-service"
    otel_exporter_otlp_endpoint: str = "http://localhost:4318"
    otel_console_exporter: bool = False

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------
    @property
    def remote_generation_active(self) -> bool:
        """True when the remote content generator should be used."""
        return self.content_generation_enabled and bool(
            self.azure_openai_api_key and self.azure_openai_endpoint
        )

    def validate_runtime(self) -> None:
        """Check that required values are consistent.

        Call this at application startup (not at import time) so that
        tests can override settings before validation runs.
        """
        if self.kv_backend not in ("memory", "sqlite"):
            raise ValueError(f"KV_BACKEND must be 'memory' or 'sqlite', got {self.kv_backend!r}")
        if self.auth_enabled and len(self.jwt_secret) < 16:
            raise ValueError("JWT_SECRET must be at least 16 characters when auth is enabled.")
        if self.profile_timeout_seconds <= 0:
            raise ValueError("PROFILE_TIMEOUT_SECONDS must be positive.")


@lru_cache
def get_settings() -> Settings:
    """Return the cached Settings singleton."""
    return Settings()
