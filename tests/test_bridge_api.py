"""
Tests for the native bridge endpoints.
"""
import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from conftest import BACKEND_URL
from fortune_uploader.core.picker import HostPhotoPicker, PathPhotoPicker
from fortune_uploader.main import create_app
from fortune_uploader.models import UploadFailure
from fortune_uploader.services.upload_service import UploadOrchestrator


async def wait_until_resolved(orchestrator, request_id, timeout=5.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while orchestrator.correlator.is_pending(request_id):
        if loop.time() > deadline:
            raise AssertionError(f"request {request_id} never resolved")
        await asyncio.sleep(0.01)


@pytest.fixture
def bridge_orchestrator(backend, sleeper):
    return UploadOrchestrator(
        picker=HostPhotoPicker(),
        server_url_provider=lambda: BACKEND_URL,
        transport=backend.transport,
        sleep=sleeper,
    )


def bridge_client(orchestrator):
    app = create_app(orchestrator)
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestBridgeAPI:
    @pytest.mark.asyncio
    async def test_health(self, bridge_orchestrator):
        async with bridge_client(bridge_orchestrator) as client:
            response = await client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_full_upload_flow(self, bridge_orchestrator, backend, photo_path):
        async with bridge_client(bridge_orchestrator) as client:
            token = await client.post("/api/v1/native/access-token", json={"token": "bridge-token"})
            assert token.json() == {"success": True}

            started = await client.post(
                "/api/v1/native/uploads", json={"options": {"fortuneId": "f-9"}}
            )
            assert started.status_code == 200
            request_id = started.json()["request_id"]

            pending = await client.get(f"/api/v1/native/uploads/{request_id}")
            assert pending.json() == {
                "request_id": request_id,
                "status": "pending",
                "result": None,
            }

            selected = await client.post(
                f"/api/v1/native/uploads/{request_id}/selection",
                json={"path": str(photo_path)},
            )
            assert selected.status_code == 202

            await wait_until_resolved(bridge_orchestrator, request_id)

            done = await client.get(f"/api/v1/native/uploads/{request_id}")
            assert done.json() == {
                "request_id": request_id,
                "status": "done",
                "result": {
                    "success": True,
                    "signedUrl": "https://cdn/a.jpg",
                    "replaced": False,
                    "path": "u1/a.jpg",
                    "width": 64,
                    "height": 48,
                },
            }

            # delivered once
            again = await client.get(f"/api/v1/native/uploads/{request_id}")
            assert again.status_code == 404

        ticket = backend.calls_to("issue-fortune-upload-ticket")[0]
        assert ticket.headers["Authorization"] == "Bearer bridge-token"

    @pytest.mark.asyncio
    async def test_cancel_flow(self, bridge_orchestrator, backend):
        async with bridge_client(bridge_orchestrator) as client:
            started = await client.post("/api/v1/native/uploads", json={})
            request_id = started.json()["request_id"]

            cancelled = await client.post(f"/api/v1/native/uploads/{request_id}/cancel")
            assert cancelled.status_code == 202

            await wait_until_resolved(bridge_orchestrator, request_id)

            done = await client.get(f"/api/v1/native/uploads/{request_id}")
            assert done.json()["result"] == {"cancelled": True}

        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_second_upload_rejected_while_busy(self, bridge_orchestrator):
        async with bridge_client(bridge_orchestrator) as client:
            first = (await client.post("/api/v1/native/uploads", json={})).json()["request_id"]
            second = (await client.post("/api/v1/native/uploads", json={})).json()["request_id"]

            rejected = await client.get(f"/api/v1/native/uploads/{second}")
            assert rejected.json()["result"] == {
                "success": False,
                "error": "An upload is already in progress",
            }

            await client.post(f"/api/v1/native/uploads/{first}/cancel")
            await wait_until_resolved(bridge_orchestrator, first)

    @pytest.mark.asyncio
    async def test_selection_for_unknown_request(self, bridge_orchestrator, photo_path):
        async with bridge_client(bridge_orchestrator) as client:
            response = await client.post(
                "/api/v1/native/uploads/404/selection", json={"path": str(photo_path)}
            )
            cancel = await client.post("/api/v1/native/uploads/404/cancel")

        assert response.status_code == 404
        assert cancel.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_status(self, bridge_orchestrator):
        async with bridge_client(bridge_orchestrator) as client:
            response = await client.get("/api/v1/native/uploads/12345")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_selection_needs_host_picker(self, backend, sleeper, photo_path):
        orchestrator = UploadOrchestrator(
            picker=PathPhotoPicker(),
            server_url_provider=lambda: BACKEND_URL,
            transport=backend.transport,
            sleep=sleeper,
        )

        async with bridge_client(orchestrator) as client:
            response = await client.post(
                "/api/v1/native/uploads/1/selection", json={"path": str(photo_path)}
            )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_shutdown_interrupts_in_flight_upload(self, bridge_orchestrator):
        app = create_app(bridge_orchestrator)

        async with app.router.lifespan_context(app):
            async with AsyncClient(
                transport=ASGITransport(app=app), base_url="http://test"
            ) as client:
                started = await client.post("/api/v1/native/uploads", json={})
                request_id = started.json()["request_id"]
                assert bridge_orchestrator.correlator.is_pending(request_id)

        assert bridge_orchestrator.active_request_id is None
        assert bridge_orchestrator.correlator.take(request_id) == UploadFailure(
            error="Upload interrupted"
        )
