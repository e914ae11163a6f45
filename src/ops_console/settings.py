"""
ops_console.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide env-driven settings (prefix `OPS_`) for API, persistence, auth and routing.
- Hide secrets from repr/logging (JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="OPS_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "ops-console-access"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth (identity only; the role always comes from the role directory)
    jwt_alg: str = "HS256"
    jwt_issuer: str = "ops-console"
    jwt_audience: str = "ops-console-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)

    database_url: str = "sqlite+aiosqlite:///./ops_console.db"

    # Routing targets used by guards and the root redirect
    login_path: str = "/login"
    landing_path: str = "/landing"
    denied_fallback_path: str = "/home"

    audit_enabled: bool = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Role tables (home routes, blocked roles) are code, not settings: see `access.roles`.
