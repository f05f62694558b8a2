import json
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["*"]


def _parse_cors_origins(v: str | None) -> list[str]:
    s = (v or "").strip()
    if not s:
        return _DEFAULT_CORS.copy()
    if s.startswith("["):
        try:
            out = json.loads(s)
        except json.JSONDecodeError:
            return _DEFAULT_CORS.copy()
        return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
    return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    debug: bool = Field(default=False, description="DEBUG")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="*",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    # Ledger
    reclaim_locks: bool = Field(default=True, alias="RECLAIM_LOCKS")
    store_latency_ms: int = Field(default=0, ge=0, alias="STORE_LATENCY_MS")

    @property
    def cors_origins(self) -> list[str]:
        return _parse_cors_origins(self.cors_origins_raw)


@lru_cache
def get_settings() -> Settings:
    return Settings()
