import logging
import os

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

console_handler = logging.StreamHandler()
console_handler.setFormatter(logging.Formatter(LOG_FORMAT))


def parse_origins(raw_value: str | None):
    """
    Split a comma separated origins string.

    Args:
        raw_value (str | None): Value of the CORS_ORIGINS variable.

    Returns:
        list[str]: Non-empty origins.
    """
    if not raw_value:
        return []
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


class Config:
    """Settings read from the environment (or a .env file) at import time."""

    PORT = int(os.getenv("PORT", 5000))

    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "movie_catalog")

    JWT_SECRET = os.getenv("JWT_SECRET")
    TOKEN_MAX_AGE_SECONDS = int(os.getenv("TOKEN_MAX_AGE_SECONDS", 3600))

    SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
    EMAIL_SENDER = os.getenv("EMAIL_SENDER", "no-reply@moviecatalog.local")

    REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
    REDIS_DB = int(os.getenv("REDIS_DB", 0))
    CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", 600))

    CORS_ORIGINS = parse_origins(os.getenv("CORS_ORIGINS", "http://localhost:5000"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    NOTIFICATION_HOUR = int(os.getenv("NOTIFICATION_HOUR", 0))
    NOTIFICATION_MINUTE = int(os.getenv("NOTIFICATION_MINUTE", 0))

    SWAGGER_ENABLED = os.getenv("SWAGGER_ENABLED", "true").strip().lower() in {"1", "true", "yes", "on"}


def configure_logging(level: str | int = "INFO"):
    """
    Configure the root logger once for the process.

    Args:
        level (str | int): Level name or number.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    if console_handler not in root.handlers:
        root.addHandler(console_handler)
