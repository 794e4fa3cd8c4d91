"""Start/stop endpoints for transfer jobs."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

router = APIRouter(prefix="/automations")


@router.post("/{job_id}/start", status_code=202)
async def start_automation(job_id: int, request: Request):
    runtime = request.app.state.runtime
    job = await runtime.store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Automation {job_id} not found")
    task = await runtime.orchestrator.start(job_id)
    return {"job_id": job_id, "started": task is not None}


@router.post("/{job_id}/stop")
async def stop_automation(job_id: int, request: Request):
    stopped = await request.app.state.runtime.orchestrator.stop(job_id)
    return {"job_id": job_id, "stopped": stopped}


@router.get("/stats")
async def automation_stats(request: Request):
    return await request.app.state.runtime.store.dashboard_stats()
