"""Runtime configuration read from environment variables.

Values are module attributes so callers can read them at call time
(``settings.HTTP_RETRY_MAX``) and tests can override them with
``monkeypatch.setattr``.
"""

import os


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ---- Database ----
DB_HOST = os.getenv("DB_HOST", "catalog-db")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "catalog")
DB_USER = os.getenv("DB_USER", "catalog_user")
DB_PASSWORD = os.getenv("DB_PASSWORD", "catalog-pass")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
DB_STARTUP_TIMEOUT = float(os.getenv("DB_STARTUP_TIMEOUT", "30"))

# ---- Services ----
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")
SERVICE_HOST = os.getenv("SERVICE_HOST", "0.0.0.0")
CATALOG_PORT = int(os.getenv("CATALOG_PORT", "9001"))
EXPEDITIONS_PORT = int(os.getenv("EXPEDITIONS_PORT", "9002"))

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

# ---- Launch Library (third-party expedition data) ----
LAUNCH_LIBRARY_BASE_URL = os.getenv("LAUNCH_LIBRARY_BASE_URL", "https://ll.thespacedevs.com")
LAUNCH_LIBRARY_EXPEDITIONS_PATH = os.getenv("LAUNCH_LIBRARY_EXPEDITIONS_PATH", "/2.3.0/expeditions/")
EXPEDITIONS_FIXTURE = os.getenv("EXPEDITIONS_FIXTURE") or None
USE_HTTP_ADAPTERS = _flag("USE_HTTP_ADAPTERS", "true")

# ---- Outbound HTTP resilience ----
HTTP_TIMEOUT_SECS = float(os.getenv("HTTP_TIMEOUT_SECS", "5"))
HTTP_RETRY_MAX = int(os.getenv("HTTP_RETRY_MAX", "3"))
HTTP_RETRY_BACKOFF_BASE = float(os.getenv("HTTP_RETRY_BACKOFF_BASE", "0.15"))
HTTP_RETRY_MAX_SLEEP = float(os.getenv("HTTP_RETRY_MAX_SLEEP", "0.5"))
HTTP_CIRCUIT_FAIL_THRESHOLD = int(os.getenv("HTTP_CIRCUIT_FAIL_THRESHOLD", "5"))
HTTP_CIRCUIT_RESET_TIMEOUT = float(os.getenv("HTTP_CIRCUIT_RESET_TIMEOUT", "30"))
