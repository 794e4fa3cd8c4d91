"""HTTP endpoint tests against the FastAPI app with an in-process runtime."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import httpx
import pytest
import pytest_asyncio
from fastapi import WebSocketDisconnect
from httpx import ASGITransport, AsyncClient

from listing_transfer.config import settings
from listing_transfer.connectivity.prober import ConnectivityProber
from listing_transfer.database import get_db
from listing_transfer.engine.orchestrator import TransferOrchestrator
from listing_transfer.routers.ws import events_socket
from listing_transfer.runtime import Runtime
from listing_transfer.services import code_svc, settings_svc
from listing_transfer.tests.conftest import (
    FakeMedia,
    FakeProber,
    FakePublisher,
    FakeScraper,
    configure_store,
    make_manager,
)


@pytest_asyncio.fixture
async def runtime(store, broadcaster, activity):
    manager, _ = make_manager()
    http = AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    prober = ConnectivityProber(manager, activity, client=http, settle_seconds=0)
    media = FakeMedia()
    orchestrator = TransferOrchestrator(
        store,
        FakeProber(),
        activity,
        broadcaster,
        scraper=FakeScraper(),
        publisher=FakePublisher(),
        media=media,
    )
    yield Runtime(store, broadcaster, activity, manager, prober, media, orchestrator)
    await http.aclose()


@pytest_asyncio.fixture
async def client(runtime, session_factory):
    from listing_transfer.app import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.runtime = runtime
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health_endpoint(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_ready_reports_runtime_state(client):
    resp = await client.get("/ready")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ready"
    assert body["browser_running"] is False
    assert body["active_jobs"] == []


@pytest.mark.asyncio
async def test_start_unknown_automation_is_404(client):
    resp = await client.post("/automations/404/start")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_start_runs_job_in_background(client, runtime, session_factory):
    await configure_store(runtime.store)
    async with session_factory() as db:
        await code_svc.create_code(db, "P001", None)
    job = await runtime.store.create_job("UNI1", "CP-1")

    resp = await client.post(f"/automations/{job.id}/start")
    assert resp.status_code == 202
    assert resp.json() == {"job_id": job.id, "started": True}

    await runtime.orchestrator.wait_idle()
    assert (await runtime.store.get_job(job.id)).status == "completed"

    stats = (await client.get("/automations/stats")).json()
    assert stats["completed"] == 1
    assert stats["time_saved"] == "0h 30m"


@pytest.mark.asyncio
async def test_stop_inactive_automation(client, runtime):
    job = await runtime.store.create_job("UNI1", "CP-1")

    resp = await client.post(f"/automations/{job.id}/stop")

    assert resp.status_code == 200
    assert resp.json() == {"job_id": job.id, "stopped": False}


@pytest.mark.asyncio
async def test_probe_endpoint_without_credentials(client):
    resp = await client.post("/connectivity/source", params={"use_credentials": "false"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["outcome"] == "reachable"
    assert body["recommendation"] == "authenticate_manually"


@pytest.mark.asyncio
async def test_probe_unknown_system_is_404(client):
    resp = await client.post("/connectivity/mars")
    assert resp.status_code == 404


class FakeSocket:
    """Just enough of starlette's WebSocket for the events route."""

    def __init__(self, runtime, limit: int):
        self.app = SimpleNamespace(state=SimpleNamespace(runtime=runtime))
        self.limit = limit
        self.accepted = False
        self.sent: list[dict] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: dict) -> None:
        self.sent.append(data)
        if len(self.sent) >= self.limit:
            raise WebSocketDisconnect(code=1001)


@pytest.mark.asyncio
async def test_events_socket_forwards_until_disconnect(runtime):
    socket = FakeSocket(runtime, limit=2)
    task = asyncio.create_task(events_socket(socket))
    while runtime.broadcaster.subscriber_count == 0:
        await asyncio.sleep(0)

    runtime.broadcaster.publish("progress", {"job_id": 1, "progress": 20})
    runtime.broadcaster.publish("log", {"level": "info", "message": "hi"})
    await asyncio.wait_for(task, timeout=1)

    assert socket.accepted
    assert [e["type"] for e in socket.sent] == ["progress", "log"]
    assert runtime.broadcaster.subscriber_count == 0


@pytest.mark.asyncio
async def test_runtime_headless_follows_environment(session_factory, monkeypatch):
    monkeypatch.setattr(settings, "browser_headless", False)

    built = await Runtime.create(session_factory)
    try:
        assert built.browser.headless is False
        assert await built.store.get_setting("auto_retry") is True
    finally:
        await built.close()


@pytest.mark.asyncio
async def test_runtime_stored_headless_overrides_environment(session_factory, monkeypatch):
    monkeypatch.setattr(settings, "browser_headless", False)
    async with session_factory() as db:
        await settings_svc.set_setting(db, "headless", True)

    built = await Runtime.create(session_factory)
    try:
        assert built.browser.headless is True
    finally:
        await built.close()
