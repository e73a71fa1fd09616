"""
Test configuration and fixtures.
HTTP traffic goes to an in-memory fake of the ticket, storage and finalize
endpoints through httpx.MockTransport.
"""
import os

# Set test environment before any imports
os.environ["LOG_FILE"] = ""
os.environ["SUPABASE_URL"] = "https://test.supabase.co"
os.environ["FORTUNE_SERVER_URL"] = "https://test.supabase.co"

from pathlib import Path
from typing import List

import httpx
import pytest
from PIL import Image

from fortune_uploader.services.upload_service import UploadOrchestrator


BACKEND_URL = "https://test.supabase.co"
ACCESS_TOKEN = "test-token-abcd"


class FakeBackend:
    """Routes requests to canned responses and records everything it sees."""

    def __init__(self):
        self.ticket_status = 200
        self.ticket_body = {
            "url": "https://store/x",
            "ticketId": "ticket-1",
            "bucket": "photos",
            "bucketRelativePath": "u1/a.jpg",
            "formFieldName": "file",
            "requiredHeaders": {"x-upsert": "true"},
        }
        self.upload_status = 200
        self.list_status = 200
        self.list_body = [{"name": "a.jpg"}]
        self.finalize_responses = [
            (200, {"signedUrl": "https://cdn/a.jpg", "replaced": False})
        ]
        self.requests: List[httpx.Request] = []
        self._finalize_calls = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/functions/v1/issue-fortune-upload-ticket":
            return httpx.Response(self.ticket_status, json=self.ticket_body)

        if path.startswith("/storage/v1/object/list/"):
            return httpx.Response(self.list_status, json=self.list_body)

        if path == "/functions/v1/finalize-fortune-photo":
            index = min(self._finalize_calls, len(self.finalize_responses) - 1)
            self._finalize_calls += 1
            status, body = self.finalize_responses[index]
            if status == "connect-error":
                raise httpx.ConnectError("connection reset", request=request)
            return httpx.Response(status, json=body)

        if request.url.host == "store":
            return httpx.Response(self.upload_status, json={"Key": "photos/u1/a.jpg"})

        return httpx.Response(404, json={"error": "not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, fragment: str) -> List[httpx.Request]:
        return [r for r in self.requests if fragment in str(r.url)]


class SleepRecorder:
    """Stands in for asyncio.sleep and records each requested delay."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def photo_path(tmp_path: Path) -> Path:
    """A real 64x48 JPEG on disk."""
    path = tmp_path / "photo.jpg"
    Image.new("RGB", (64, 48), color=(200, 120, 40)).save(path, "JPEG")
    return path


@pytest.fixture
def orchestrator(backend: FakeBackend, sleeper: SleepRecorder) -> UploadOrchestrator:
    return UploadOrchestrator(
        server_url_provider=lambda: BACKEND_URL,
        access_token=ACCESS_TOKEN,
        transport=backend.transport,
        sleep=sleeper,
    )
