from functools import lru_cache
from typing import List, Literal

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.errors import ConfigMissing


class Settings(BaseSettings):
    """Process-wide settings, read once from the environment or a .env file."""

    # S3 storage
    aws_access_key: str
    aws_secret_key: str
    aws_region: str
    aws_bucket: str

    # MongoDB
    mongodb_conn_uri: str
    mongodb_db_name: str
    collection_name: str

    # CORS
    frontend_origin: str = "http://localhost:3000"
    cors_max_age: int = 12 * 60 * 60

    # Server
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator(
        "aws_access_key",
        "aws_secret_key",
        "aws_region",
        "aws_bucket",
        "mongodb_conn_uri",
        "mongodb_db_name",
        "collection_name",
    )
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


def load_settings(**overrides) -> Settings:
    """
    Build a Settings instance, reporting every absent required value at once.

    Raises:
        ConfigMissing: If a required setting is unset or blank
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        names: List[str] = []
        for error in e.errors():
            if error["loc"]:
                names.append(str(error["loc"][0]).upper())
        raise ConfigMissing(names) from e


@lru_cache
def get_settings() -> Settings:
    return load_settings()
