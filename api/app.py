"""FastAPI application serving the repairing /api proxy."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from api.logging_setup import configure_logging
from api.proxy import router as proxy_router


@asynccontextmanager
async def _lifespan(_app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    yield


app = FastAPI(title="Payload repair proxy", lifespan=_lifespan)
app.include_router(proxy_router)


@app.get("/health")
def health() -> dict[str, bool]:
    return {"healthy": True}


@app.get("/metrics")
def metrics() -> Response:
    """Expose Prometheus metrics for scraping."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
