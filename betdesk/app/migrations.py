"""Utility helpers to ensure the database schema is up to date."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine.reflection import Inspector

from .database import SQLALCHEMY_DATABASE_URL

LOGGER = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

RevisionSentinel = tuple[str, Callable[[Inspector], bool]]


def _column_exists(inspector: Inspector, table_name: str, column_name: str) -> bool:
    if not inspector.has_table(table_name):
        return False
    return column_name in {column["name"] for column in inspector.get_columns(table_name)}


REVISION_SENTINELS: Sequence[RevisionSentinel] = (
    ("20241020_0001", lambda inspector: _column_exists(inspector, "tickets", "closest_match_date")),
)


def _determine_latest_revision(inspector: Inspector, sentinels: Iterable[RevisionSentinel]) -> Optional[str]:
    for revision, check in sentinels:
        if check(inspector):
            return revision
    return None


def build_alembic_config(database_url: Optional[str] = None) -> Config:
    config = Config(str(BASE_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BASE_DIR / "alembic"))
    url = database_url or os.getenv("DATABASE_URL") or SQLALCHEMY_DATABASE_URL
    # ConfigParser interpolates "%", which rendered URLs may contain.
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def run_database_migrations(database_url: Optional[str] = None) -> None:
    """Run Alembic migrations so the ticket tables exist before serving requests.

    Databases created before Alembic was introduced are stamped with the
    revision their tables correspond to instead of being recreated.
    """

    config = build_alembic_config(database_url)
    final_url = config.get_main_option("sqlalchemy.url")
    LOGGER.info("Running database migrations at %s", final_url)

    connect_args = {"check_same_thread": False} if final_url.startswith("sqlite") else {}
    engine = create_engine(final_url, connect_args=connect_args)
    try:
        inspector = inspect(engine)
        if not inspector.has_table("alembic_version"):
            detected_revision = _determine_latest_revision(inspector, REVISION_SENTINELS)
            if detected_revision:
                LOGGER.info(
                    "Detected existing tables matching revision %s; stamping before upgrade",
                    detected_revision,
                )
                command.stamp(config, detected_revision)
        command.upgrade(config, "head")
    finally:
        engine.dispose()
