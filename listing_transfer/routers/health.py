"""Health and readiness checks."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    await db.execute(text("SELECT 1"))
    return {"status": "healthy", "service": "listing_transfer"}


@router.get("/ready")
async def readiness_check(request: Request, db: AsyncSession = Depends(get_db)):
    await db.execute(text("SELECT 1"))
    runtime = request.app.state.runtime
    return {
        "status": "ready",
        "service": "listing_transfer",
        "browser_running": runtime.browser.is_running,
        **runtime.orchestrator.status(),
    }
