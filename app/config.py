import warnings
from typing import List

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ── Known insecure default keys (must never be used in production) ──
_INSECURE_KEYS = {
    "change_this",
    "change_this_to_a_secure_random_string",
    "CHANGE_THIS_PRODUCTION_SECRET_MIN_32_CHARS",
    "secret",
}


def _split_csv(value: str) -> List[str]:
    return [item.strip().lower() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    APP_NAME: str = "Guestbook Domains"
    APP_ENV: str = "development"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "change_this"
    ALGORITHM: str = "HS256"

    # CORS
    BACKEND_CORS_ORIGINS: str = ""

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "guestbook"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    SLOW_QUERY_THRESHOLD_MS: int = 500

    # Redis (domain cache + rate limiter). Empty = disabled.
    REDIS_URL: str = ""
    REDIS_SOCKET_TIMEOUT: float = 0.5

    # Platform hostnames (never resolved as custom domains)
    PLATFORM_DOMAIN: str = "guestbook.sh"
    PLATFORM_PREVIEW_SUFFIXES: str = "vercel.app"
    PLATFORM_EXTRA_HOSTS: str = ""

    # DNS targets published to domain owners
    PLATFORM_APEX_IP: str = "76.76.21.21"
    PLATFORM_CNAME_TARGET: str = "cname.vercel-dns.com"

    # Vercel domains API
    VERCEL_API_URL: str = "https://api.vercel.com"
    VERCEL_TOKEN: str = ""
    VERCEL_PROJECT_ID: str = ""
    VERCEL_TEAM_ID: str = ""
    REGISTRAR_TIMEOUT_SECONDS: float = 10.0
    REGISTRAR_RETRY_ATTEMPTS: int = 2

    # Live DNS verification
    DNS_LOOKUP_TIMEOUT_SECONDS: float = 5.0

    # Domain cache TTLs (seconds)
    DOMAIN_CACHE_TTL: int = 3600
    DOMAIN_NEGATIVE_CACHE_TTL: int = 60

    # Domain lifecycle rate limiting (per acting user)
    RATE_LIMIT_ENABLED: bool = True
    DOMAIN_OPS_RATE_LIMIT: int = 10
    DOMAIN_OPS_RATE_WINDOW_SECONDS: int = 3600

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @model_validator(mode="after")
    def _validate_production_security(self) -> "Settings":
        """Block startup if critical secrets are insecure in production / staging."""
        if self.APP_ENV in ("production", "staging"):
            if self.SECRET_KEY in _INSECURE_KEYS or len(self.SECRET_KEY) < 32:
                raise ValueError(
                    f"SECRET_KEY is insecure ('{self.SECRET_KEY[:8]}…'). "
                    "Set a strong random key (≥ 32 chars) in .env or environment."
                )
            if self.POSTGRES_PASSWORD in ("postgres", ""):
                raise ValueError(
                    "POSTGRES_PASSWORD is set to default 'postgres'. "
                    "Set a strong password in .env or environment."
                )
            if not self.VERCEL_TOKEN or not self.VERCEL_PROJECT_ID:
                warnings.warn(
                    "VERCEL_TOKEN / VERCEL_PROJECT_ID are not set; "
                    "custom domains cannot be added to the hosting platform.",
                    UserWarning,
                    stacklevel=2,
                )
            if not self.REDIS_URL:
                warnings.warn(
                    "REDIS_URL is not set; domain cache and rate limiting are disabled.",
                    UserWarning,
                    stacklevel=2,
                )
        return self

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_staging(self) -> bool:
        return self.APP_ENV == "staging"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def database_url(self) -> str:
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_SERVER}/{self.POSTGRES_DB}"
        )

    @property
    def platform_preview_suffixes(self) -> List[str]:
        return _split_csv(self.PLATFORM_PREVIEW_SUFFIXES)

    @property
    def platform_extra_hosts(self) -> List[str]:
        return _split_csv(self.PLATFORM_EXTRA_HOSTS)


settings = Settings()
