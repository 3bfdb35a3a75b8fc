"""FastAPI app entrypoint."""

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from rmm_ingest.api.routes import router
from rmm_ingest.config import get_settings
from rmm_ingest.storage.database import init_db


def configure_logging() -> None:
    logger.remove()
    logger.add(sys.stderr, level=get_settings().log_level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    logger.info("Database initialized")
    yield


app = FastAPI(title="RMM Alert Ingestion", lifespan=lifespan)
app.include_router(router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
