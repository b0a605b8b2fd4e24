"""
Application configuration. Loads from environment variables.
Secrets and sensitive config must never be hardcoded.
"""

import os

from dotenv import load_dotenv

load_dotenv()
from functools import lru_cache

RESOLUTION_MODES = ("sql", "memory")


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()


class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "BundleRelay"
    debug: bool = False

    # Database (postgresql+psycopg for psycopg3; sqlite+pysqlite:///path for embedded)
    database_url: str = "postgresql+psycopg://localhost:5432/bundlerelay_dev"
    db_connect_timeout: int = 10  # seconds

    # Security
    jwt_secret: str = ""  # HMAC secret for delivery tokens
    delivery_token_ttl_seconds: int = 60
    admin_token: str = ""  # Required for /api/bundles management endpoints

    # Resolution: "sql" runs the dialect query, "memory" loads rows and resolves in-process
    resolution_mode: str = "sql"
    default_channel: str = "production"

    # Storage
    storage_root: str = "./storage"
    public_base_url: str = "http://localhost:8000"

    def __init__(self) -> None:
        self.app_name = os.getenv("APP_NAME", self.app_name)
        self.debug = os.getenv("DEBUG", "false").lower() == "true"

        default_user = os.getenv("PGUSER") or os.getenv("USER") or "postgres"
        default_url = (
            f"postgresql+psycopg://{default_user}:"
            f"{os.getenv('PGPASSWORD', '')}@"
            f"{os.getenv('PGHOST', 'localhost')}:"
            f"{os.getenv('PGPORT', '5432')}/"
            f"{os.getenv('PGDATABASE', 'bundlerelay_dev')}"
        )
        raw_url = os.getenv("DATABASE_URL", default_url)
        # Ensure psycopg3 driver if URL uses generic postgresql://
        if raw_url.startswith("postgresql://") and not raw_url.startswith("postgresql+psycopg"):
            raw_url = raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
        self.database_url = raw_url
        self.db_connect_timeout = int(os.getenv("DB_CONNECT_TIMEOUT", str(self.db_connect_timeout)))

        self.jwt_secret = os.getenv("JWT_SECRET", "")
        self.delivery_token_ttl_seconds = int(
            os.getenv("DELIVERY_TOKEN_TTL_SECONDS", str(self.delivery_token_ttl_seconds))
        )
        self.admin_token = os.getenv("ADMIN_TOKEN", "")

        mode = os.getenv("RESOLUTION_MODE", self.resolution_mode).strip().lower()
        if mode not in RESOLUTION_MODES:
            raise ValueError(
                f"RESOLUTION_MODE must be one of {', '.join(RESOLUTION_MODES)}, got {mode!r}"
            )
        self.resolution_mode = mode
        self.default_channel = os.getenv("DEFAULT_CHANNEL", self.default_channel)

        self.storage_root = os.getenv("STORAGE_ROOT", self.storage_root)
        # Signed download URLs are built as {public_base_url}/files/{key}?token=...
        self.public_base_url = os.getenv("PUBLIC_BASE_URL", self.public_base_url).rstrip("/")

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")
