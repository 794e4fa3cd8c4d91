"""FastAPI application for the listing transfer service."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .runtime import Runtime


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Auto-create tables for SQLite (local dev)
    if "sqlite" in settings.database_url:
        from .database import create_tables

        await create_tables()
    runtime = await Runtime.create()
    app.state.runtime = runtime
    yield
    await runtime.close()


app = FastAPI(title=settings.app_title, lifespan=lifespan)

from .routers import automations, connectivity, health, ws  # noqa: E402

app.include_router(health.router)
app.include_router(ws.router)
app.include_router(automations.router)
app.include_router(connectivity.router)
