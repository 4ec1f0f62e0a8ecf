from __future__ import annotations

from functools import lru_cache
from typing import Any
from urllib.parse import quote_plus

from pydantic import Field, PostgresDsn, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TEXT_MODEL = "gpt-4o-mini"
DEFAULT_VISION_MODEL = "gpt-4o"
DEFAULT_ATTACHMENT_MAX_SIZE_BYTES = 5 * 1024 * 1024


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
        default="http://localhost:5173",
        validation_alias="FRONTEND_ORIGINS",
    )

    db_host: str = Field(default="localhost", validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_name: str = Field(default="medchat_dev", validation_alias="DB_NAME")
    db_user: str = Field(default="medchat", validation_alias="DB_USER")
    db_password: str = Field(default="medchat", validation_alias="DB_PASSWORD")
    db_ssl_mode: str = Field(default="prefer", validation_alias="DB_SSL_MODE")

    database_url: PostgresDsn | None = Field(default=None, validation_alias="DATABASE_URL")

    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(default=None, validation_alias="OPENAI_BASE_URL")
    chat_text_model: str = Field(default=DEFAULT_TEXT_MODEL, validation_alias="CHAT_TEXT_MODEL")
    chat_vision_model: str = Field(default=DEFAULT_VISION_MODEL, validation_alias="CHAT_VISION_MODEL")
    chat_max_tokens: int = Field(default=2000, ge=1, validation_alias="CHAT_MAX_TOKENS")
    chat_temperature: float = Field(default=0.7, ge=0.0, le=2.0, validation_alias="CHAT_TEMPERATURE")
    chat_history_limit: int = Field(default=10, ge=1, validation_alias="CHAT_HISTORY_LIMIT")
    chat_document_char_limit: int | None = Field(
        default=2000,
        ge=1,
        validation_alias="CHAT_DOCUMENT_CHAR_LIMIT",
    )

    attachment_max_size_bytes: int = Field(
        default=DEFAULT_ATTACHMENT_MAX_SIZE_BYTES,
        ge=1,
        validation_alias="ATTACHMENT_MAX_SIZE_BYTES",
    )

    @field_validator("chat_document_char_limit", mode="before")
    @classmethod
    def _disable_char_limit(cls, value: Any) -> Any:
        # 0 or an empty value turns truncation off.
        if isinstance(value, str):
            value = value.strip()
        if value in ("", "0", 0):
            return None
        return value

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


@lru_cache
def get_settings() -> Settings:
    return Settings()
