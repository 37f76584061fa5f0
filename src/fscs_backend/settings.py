from __future__ import annotations

from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FSCS_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    database_url: str = "sqlite+aiosqlite:///./fscs.db"
    database_pool_size: int = 5
    database_pool_timeout_seconds: float = 30.0

    # For local development
    auto_create_db: bool = False

    log_level: str = "INFO"
    log_json: bool = False
    log_http_requests: bool = True

    # Signs the `user` claim cookie. In production, override via env.
    signing_key: SecretStr = SecretStr("dev-insecure-change-me")

    # Role name -> comma separated capability names, e.g. {"fsr": "ManageSitzungen,CreateAntrag"}
    groups: dict[str, str] = {}

    # OAuth2 identity provider
    oauth_source_name: str = "oauth"
    oauth_client_id: str | None = None
    oauth_client_secret: SecretStr | None = None
    oauth_auth_url: str | None = None
    oauth_token_url: str | None = None
    oauth_userinfo_url: str | None = None
    oauth_redirect_url: str | None = None
    oauth_scope: str = "openid profile groups"
    oauth_timeout_seconds: float = 10.0

    # Lifetime of a freshly issued `user` claim.
    user_claim_ttl_seconds: int = 300
    cookie_max_age_seconds: int = 60 * 60 * 24 * 30

    # Calendar name -> ICS url
    calendars: dict[str, str] = {}
    calendar_ttl_seconds: float = 4 * 60 * 60
    calendar_timeout_seconds: float = 10.0

    upload_dir: Path = Path("./uploads")
    max_file_size: int = 10 * 1024 * 1024

    cors_allowed_origins: list[str] = []


def get_settings() -> Settings:
    return Settings()
