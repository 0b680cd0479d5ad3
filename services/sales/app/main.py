"""Savdo sales service entrypoint."""

import logging
import os

from fastapi import FastAPI

from services.sales.app.db.init_db import init_db
from services.sales.app.routers.activity import router as activity_router
from services.sales.app.routers.confirmation import router as confirmation_router
from services.sales.app.routers.drafts import router as drafts_router
from services.sales.app.routers.sales import router as sales_router
from services.sales.app.routers.sessions import router as sessions_router

logging.basicConfig(
    level=os.getenv("SAVDO_LOG_LEVEL", "INFO").strip().upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Savdo Sales API")

app.include_router(sessions_router)
app.include_router(drafts_router)
app.include_router(sales_router)
app.include_router(confirmation_router)
app.include_router(activity_router)


@app.on_event("startup")
def _startup() -> None:
    init_db()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
