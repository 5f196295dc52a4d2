"""Configuration settings using Pydantic."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseSettings):
    """Remote statistics service configuration."""
    model_config = SettingsConfigDict(env_prefix="BACKEND_")

    base_url: str = "https://medical-backend-gamma2.vercel.app"
    timeout_seconds: float = 15.0
    login_path: str = "/api/auth/login"

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)


class ServerSettings(BaseSettings):
    """HTTP server configuration."""
    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = "0.0.0.0"
    port: int = 8000


class SessionSettings(BaseSettings):
    """Browser session cookie configuration."""
    model_config = SettingsConfigDict(env_prefix="SESSION_")

    secret_key: str = ""
    cookie_name: str = "tuc_session"
    max_age_seconds: int = 14 * 24 * 3600
    https_only: bool = False
    default_theme: str = "system"  # light, dark, system


class LoggingSettings(BaseSettings):
    """Logging configuration."""
    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    backend: BackendSettings = Field(default_factory=BackendSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
