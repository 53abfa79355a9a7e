"""Expose the betdesk backoffice FastAPI app."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .migrations import run_database_migrations
from .routers import tickets_router
from .settings import RUN_MIGRATIONS_ENV, log_level, read_bool_env

LOGGER = logging.getLogger(__name__)


def configure_logging() -> None:
    """Apply ``LOG_LEVEL`` to the root logger, adding a handler if none exists."""

    logging.basicConfig(
        level=log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(log_level())


def ensure_database_is_ready() -> None:
    """Apply pending database migrations when the service starts."""

    if not read_bool_env(RUN_MIGRATIONS_ENV, True):
        LOGGER.info("Database migrations disabled via %s", RUN_MIGRATIONS_ENV)
        return
    LOGGER.info("Ensuring database schema is up to date before serving requests")
    run_database_migrations()


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    ensure_database_is_ready()
    yield


app = FastAPI(title="betdesk Backoffice API", lifespan=lifespan)

app.include_router(tickets_router, prefix="/tickets", tags=["tickets"])


@app.get("/", tags=["health"])
def read_root() -> dict[str, str]:
    """Return a simple health check response."""
    return {"status": "ok"}
