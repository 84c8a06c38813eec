"""Configuration for the budget calculator.

Settings come from environment variables so the CLI and the web app can be
pointed at a different database or log level without code changes.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

DEFAULT_DATABASE_URL = "sqlite:///budget_plans.sqlite3"
DEFAULT_BASE_URL = "http://localhost:8710/share"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def database_url() -> str:
    return os.environ.get("BUDGET_SPLIT_DATABASE_URL") or DEFAULT_DATABASE_URL


def share_base_url() -> str:
    """Base URL that share tokens are appended to."""
    return os.environ.get("BUDGET_SPLIT_BASE_URL") or DEFAULT_BASE_URL


def log_level() -> str:
    return (os.environ.get("BUDGET_SPLIT_LOG_LEVEL") or "WARNING").upper()


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging once for a CLI or web entry point."""
    name = (level or log_level()).upper()
    logging.basicConfig(level=getattr(logging, name, logging.WARNING), format=LOG_FORMAT)
