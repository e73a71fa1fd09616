"""FastAPI dependencies shared across bridge endpoints."""

from fastapi import HTTPException, Request

from fortune_uploader.core.picker import HostPhotoPicker
from fortune_uploader.services.upload_service import UploadOrchestrator


def get_orchestrator(request: Request) -> UploadOrchestrator:
    return request.app.state.orchestrator


def get_host_picker(request: Request) -> HostPhotoPicker:
    """Return the host-driven picker, or 409 if the app runs a different one."""
    picker = get_orchestrator(request).picker
    if not isinstance(picker, HostPhotoPicker):
        raise HTTPException(
            status_code=409,
            detail="Photo selection is not delivered through the bridge",
        )
    return picker
