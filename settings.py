"""
Runtime settings read from the environment (a local .env file is honoured).
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")
PORT = int(os.getenv("PORT", 8000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Terminal orders stay on the live boards this long after their last update
ORDER_RETENTION_HOURS = int(os.getenv("ORDER_RETENTION_HOURS", 24))
NOTIFICATION_LIMIT = int(os.getenv("NOTIFICATION_LIMIT", 50))
STRICT_ORDER_TRANSITIONS = _flag("STRICT_ORDER_TRANSITIONS")
TOTAL_TOLERANCE = float(os.getenv("TOTAL_TOLERANCE", 0.01))
DEFAULT_PAYMENT_METHOD = os.getenv("DEFAULT_PAYMENT_METHOD", "Sur place")
