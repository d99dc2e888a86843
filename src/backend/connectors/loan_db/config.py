from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import quote_plus

from dotenv import load_dotenv

from common.logging_config import get_logger


load_dotenv()

logger = get_logger(__name__)

INSECURE_DEFAULT_API_KEY = "default-insecure-api-key-change-me"


@dataclass(frozen=True)
class LoanDBConfig:
    env: str
    driver: str
    server: str
    port: int
    user: str
    password: str
    database: str
    allowed_databases: tuple[str, ...] = field(default_factory=tuple)
    query_timeout_seconds: int = 30
    pool_size: int = 10
    pool_recycle_seconds: int = 1800
    url: str = ""

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    def url_for(self, database: str | None = None) -> str:
        """SQLAlchemy URL for `database` (defaults to the configured database)."""
        if self.url and database in (None, self.database):
            return self.url
        target = database or self.database
        auth = quote_plus(self.user)
        if self.password:
            auth = f"{auth}:{quote_plus(self.password)}"
        return f"{self.driver}://{auth}@{self.server}:{self.port}/{target}"


def get_loan_db_config() -> LoanDBConfig:
    """
    Load loan database configuration from environment variables.

    Reads either DB_URL (any SQLAlchemy URL), or:
      DB_DRIVER, DB_SERVER, DB_PORT, DB_USER, DB_PASSWORD, DB_DATABASE
    plus ALLOWED_DATABASES, DB_QUERY_TIMEOUT_SECONDS, DB_POOL_SIZE and ENV.
    """
    env = os.getenv("ENV", os.getenv("NODE_ENV", "development")).strip().lower()
    url = os.getenv("DB_URL", "").strip()

    if url:
        database = os.getenv("DB_DATABASE", "").strip()
        server = os.getenv("DB_SERVER", "").strip()
        user = os.getenv("DB_USER", "").strip()
    else:
        database = _require_env("DB_DATABASE")
        server = _require_env("DB_SERVER")
        user = _require_env("DB_USER")

    return LoanDBConfig(
        env=env,
        driver=os.getenv("DB_DRIVER", "mssql+pymssql").strip(),
        server=server,
        port=_int_env("DB_PORT", 1433),
        user=user,
        password=os.getenv("DB_PASSWORD", ""),
        database=database,
        allowed_databases=_allowed_databases(database),
        query_timeout_seconds=_int_env("DB_QUERY_TIMEOUT_SECONDS", 30),
        pool_size=_int_env("DB_POOL_SIZE", 10),
        url=url,
    )


def get_api_key() -> str:
    value = os.getenv("API_KEY", os.getenv("VITE_API_KEY", "")).strip()
    if not value:
        logger.warning(
            "API_KEY is not set. Using a default, insecure key; set API_KEY in .env for production."
        )
        return INSECURE_DEFAULT_API_KEY
    return value


def _allowed_databases(default_database: str) -> tuple[str, ...]:
    raw = os.getenv("ALLOWED_DATABASES", "") or default_database
    allowed = tuple(name.strip() for name in raw.split(",") if name.strip())
    if not allowed:
        logger.warning("No allowed databases configured. Database switching will be disabled.")
    return allowed


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError(f"Missing required environment variable: {name}")
    return value
