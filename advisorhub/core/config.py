from __future__ import annotations

from functools import lru_cache
from urllib.parse import quote_plus

from pydantic import Field, PostgresDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _build_postgres_dsn(
    *,
    host: str,
    port: int,
    name: str,
    user: str,
    password: str,
    ssl_mode: str,
) -> str:
    encoded_user = quote_plus(user)
    encoded_password = quote_plus(password) if password else ""
    auth = f"{encoded_user}:{encoded_password}" if encoded_password else encoded_user
    dsn = f"postgresql://{auth}@{host}:{port}/{name}"
    if ssl_mode:
        dsn = f"{dsn}?sslmode={quote_plus(ssl_mode)}"
    return dsn


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    frontend_origins: str = Field(
        default="http://localhost:3000",
        validation_alias="FRONTEND_ORIGINS",
    )

    db_host: str = Field(default="localhost", validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_name: str = Field(default="advisorhub_dev", validation_alias="DB_NAME")
    db_user: str = Field(default="advisorhub", validation_alias="DB_USER")
    db_password: str = Field(default="advisorhub", validation_alias="DB_PASSWORD")
    db_ssl_mode: str = Field(default="prefer", validation_alias="DB_SSL_MODE")

    database_url: PostgresDsn | None = Field(default=None, validation_alias="DATABASE_URL")

    auth_user_header: str = Field(default="X-User-Id", validation_alias="AUTH_USER_HEADER")

    upload_storage_dir: str = Field(
        default="storage/uploads",
        validation_alias="UPLOAD_STORAGE_DIR",
    )
    upload_max_size_bytes: int = Field(
        default=100 * 1024 * 1024,
        validation_alias="UPLOAD_MAX_SIZE_BYTES",
    )

    openailike_model: str = Field(default="gpt-4.1-mini", validation_alias="OPENAILIKE_MODEL")
    openailike_api_key: str = Field(default="", validation_alias="OPENAILIKE_API_KEY")
    openailike_base_url: str = Field(default="", validation_alias="OPENAILIKE_BASE_URL")
    openailike_temperature: float = Field(default=0.7, validation_alias="OPENAILIKE_TEMPERATURE")
    agent_timeout_seconds: float = Field(default=300.0, validation_alias="AGENT_TIMEOUT_SECONDS")

    transcription_api_key: str = Field(default="", validation_alias="TRANSCRIPTION_API_KEY")
    transcription_base_url: str = Field(default="", validation_alias="TRANSCRIPTION_BASE_URL")
    transcription_model: str = Field(default="whisper-1", validation_alias="TRANSCRIPTION_MODEL")
    transcription_timeout_seconds: float = Field(
        default=120.0,
        validation_alias="TRANSCRIPTION_TIMEOUT_SECONDS",
    )

    title_model: str = Field(default="", validation_alias="TITLE_MODEL")
    title_timeout_seconds: float = Field(default=30.0, validation_alias="TITLE_TIMEOUT_SECONDS")
    default_conversation_title: str = Field(
        default="New Chat",
        validation_alias="DEFAULT_CONVERSATION_TITLE",
    )
    title_max_chars: int = Field(default=60, validation_alias="TITLE_MAX_CHARS")
    title_turn_limit: int = Field(default=4, validation_alias="TITLE_TURN_LIMIT")

    background_max_concurrency: int = Field(default=4, validation_alias="BACKGROUND_MAX_CONCURRENCY")
    extraction_timeout_seconds: float = Field(
        default=300.0,
        validation_alias="EXTRACTION_TIMEOUT_SECONDS",
    )
    stale_attachment_sweep_enabled: bool = Field(
        default=True,
        validation_alias="STALE_ATTACHMENT_SWEEP_ENABLED",
    )
    stale_attachment_after_seconds: int = Field(
        default=900,
        validation_alias="STALE_ATTACHMENT_AFTER_SECONDS",
    )
    stale_attachment_abandon_after_seconds: int = Field(
        default=86_400,
        validation_alias="STALE_ATTACHMENT_ABANDON_AFTER_SECONDS",
    )
    stale_attachment_sweep_interval_seconds: int = Field(
        default=300,
        validation_alias="STALE_ATTACHMENT_SWEEP_INTERVAL_SECONDS",
    )

    @computed_field
    @property
    def database_dsn(self) -> str:
        if self.database_url is not None:
            return str(self.database_url)
        return _build_postgres_dsn(
            host=self.db_host,
            port=self.db_port,
            name=self.db_name,
            user=self.db_user,
            password=self.db_password,
            ssl_mode=self.db_ssl_mode,
        )

    @property
    def frontend_origin_list(self) -> list[str]:
        return [item.strip() for item in self.frontend_origins.split(",") if item.strip()]

    @property
    def resolved_title_model(self) -> str:
        return self.title_model.strip() or self.openailike_model


@lru_cache
def get_settings() -> Settings:
    return Settings()
