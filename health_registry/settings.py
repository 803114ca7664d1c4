"""Environment settings for the registry console and scripts."""

import logging
import os
from dotenv import load_dotenv

load_dotenv(override=True)


def resolve_log_level(name: str | None, default: str = "WARNING") -> str:
    """Normalize a level name, falling back to the default if it is unknown."""
    level = (name or default).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        return default
    return level


REGISTRY_DB_PATH = os.environ.get("REGISTRY_DB_PATH", ":memory:")
REGISTRY_ADMIN = os.environ.get("REGISTRY_ADMIN", "admin")
LOG_LEVEL = resolve_log_level(os.environ.get("LOG_LEVEL"))
