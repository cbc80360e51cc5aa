import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DRY_RUN = os.getenv("DRY_RUN", "false").lower() == "true"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

# Empty DB_SCHEMA means unqualified table names (SQLite has no schemas)
SCHEMA: str | None = os.getenv("DB_SCHEMA", "stays") or None

API_KEY = os.getenv("API_KEY", "")

# Stays.net external API
STAYS_API_BASE_URL = os.getenv("STAYS_API_BASE_URL", "https://casap.stays.net")
STAYS_CLIENT_ID = os.getenv("STAYS_CLIENT_ID", "")
STAYS_CLIENT_SECRET = os.getenv("STAYS_CLIENT_SECRET", "")
STAYS_REQUEST_TIMEOUT = float(os.getenv("STAYS_REQUEST_TIMEOUT", "30"))

# Sync schedule and window
SYNC_INTERVAL_MINUTES = int(os.getenv("SYNC_INTERVAL_MINUTES", "5"))
SYNC_DATE_RANGE_DAYS = int(os.getenv("SYNC_DATE_RANGE_DAYS", "180"))
PROPERTY_SYNC_HOUR = int(os.getenv("PROPERTY_SYNC_HOUR", "3"))
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"
TIMEZONE = os.getenv("TIMEZONE", "America/Sao_Paulo")

# Detail fetch throttling
DETAIL_FETCH_CONCURRENCY = int(os.getenv("DETAIL_FETCH_CONCURRENCY", "20"))
DETAIL_FETCH_DELAY_SECONDS = float(os.getenv("DETAIL_FETCH_DELAY_SECONDS", "0.1"))
CLIENT_FETCH_CONCURRENCY = int(os.getenv("CLIENT_FETCH_CONCURRENCY", "5"))
CLIENT_FETCH_DELAY_SECONDS = float(os.getenv("CLIENT_FETCH_DELAY_SECONDS", "0.3"))
ENRICHMENT_BATCH_LIMIT = int(os.getenv("ENRICHMENT_BATCH_LIMIT", "100"))

# Run guards
SYNC_MAX_DURATION_SECONDS = float(os.getenv("SYNC_MAX_DURATION_SECONDS", "900"))
SYNC_RUNNING_TIMEOUT_MINUTES = int(os.getenv("SYNC_RUNNING_TIMEOUT_MINUTES", "30"))

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]
