"""Configuration management for the office awards service."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


def _load_default_private_key() -> str:
    default_path = Path(__file__).resolve().parent / "../.." / "configs" / "dev-jwt.pem"
    if default_path.exists():
        return default_path.read_text(encoding="utf-8")
    raise FileNotFoundError("Default JWT private key not found. Provide JWT_PRIVATE_KEY environment variable.")


def _split_csv(raw: str) -> frozenset[str]:
    return frozenset(item.strip().lower() for item in raw.split(",") if item.strip())


class Settings(BaseSettings):
    app_name: str = Field(default="Office Awards")
    version: str = Field(default="0.1.0")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")

    database_url: str = Field(default="postgresql+psycopg://awards:awards@db:5432/awards")

    aws_region: str = Field(default="us-east-1")
    s3_endpoint_url: str | None = Field(default=None)
    image_bucket: str = Field(default="images")
    image_prefix: str = Field(default="participants")
    image_public_base_url: str | None = Field(default=None)
    max_image_bytes: int = Field(default=5 * 1024 * 1024)

    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=True)
    otel_exporter_endpoint: str | None = Field(default=None)

    jwt_algorithm: str = Field(default="RS256")
    jwt_private_key: str = Field(default_factory=_load_default_private_key)
    access_token_expire_minutes: int = Field(default=60)
    refresh_token_expire_days: int = Field(default=7)

    identity_provider_secret: str = Field(default="change-me")
    identity_provider_algorithm: str = Field(default="HS256")
    identity_provider_audience: str | None = Field(default=None)

    # Comma separated; kept as strings so env values need no JSON encoding.
    admin_emails: str = Field(default="")
    blocked_email_domains: str = Field(default="")

    summarizer_base_url: str = Field(default="https://api.groq.com/openai/v1")
    summarizer_api_key: str | None = Field(default=None)
    summarizer_model: str = Field(default="llama-3.3-70b-versatile")
    summarizer_timeout_seconds: float = Field(default=30.0)
    summarizer_max_input_chars: int = Field(default=12000)
    summarizer_max_rewrite_chars: int = Field(default=1000)

    text_submission_max_length: int = Field(default=500)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def admin_email_set(self) -> frozenset[str]:
        return _split_csv(self.admin_emails)

    @property
    def blocked_domain_set(self) -> frozenset[str]:
        return frozenset(domain.lstrip("@") for domain in _split_csv(self.blocked_email_domains))


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
