"""On-demand connectivity probes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from ..connectivity.systems import SYSTEMS

router = APIRouter(prefix="/connectivity")


@router.post("/{system}")
async def probe_system(system: str, request: Request, use_credentials: bool = True):
    if system not in SYSTEMS:
        raise HTTPException(status_code=404, detail=f"Unknown system: {system}")
    runtime = request.app.state.runtime
    credentials = await runtime.store.get_credentials(system) if use_credentials else None
    result = await runtime.prober.probe(system, credentials)
    return result.to_dict()
