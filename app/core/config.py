# app/core/config.py
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SUPABASE_URL
      - SUPABASE_KEY (anon key, used for magic-link auth calls)
      - DATABASE_URL (Supabase Postgres connection string, or sqlite:// locally)
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Optional:
      - SITE_URL (where magic links redirect back to)
      - APPLY_SQL_MIGRATIONS (run sql/*.sql on Postgres startup)
    """

    PROJECT_NAME: str = "Profiles Starter Backend"
    API_V1_STR: str = "/api/v1"

    # Supabase / DB config
    SUPABASE_URL: str
    SUPABASE_KEY: str
    DATABASE_URL: str

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    # Magic link redirect target (frontend origin)
    SITE_URL: str = "http://localhost:3000"

    # Postgres only: apply the RLS/trigger setup scripts on startup
    APPLY_SQL_MIGRATIONS: bool = True
    SQL_DIR: Path = PROJECT_ROOT / "sql"

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def magic_link_redirect_url(self) -> str:
        return f"{self.SITE_URL.rstrip('/')}/auth/confirm"


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
