"""Environment-driven settings for the antenna."""
import logging
import os

from .errors import ConfigError

TERMINAL_URL = os.environ.get("TERMINAL_URL", "https://mitty-terminal.uwu.ai/")
MONGO_URL = os.environ.get("MONGO_URL", "mongodb://localhost:27017")
DB_NAME = os.environ.get("DB_NAME", "antenna_db")
ANTENNA_SECRET_KEY = os.environ.get("ANTENNA_SECRET_KEY", "")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def require(name: str) -> str:
    """Return a required secret from the environment or raise ConfigError."""
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigError(f"{name} is not set")
    return value


def configure_logging() -> None:
    """Process-wide logging setup. Call once from each entry point."""
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
