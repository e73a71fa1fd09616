"""FastAPI router the embedding UI uses to drive photo uploads."""

from fastapi import APIRouter, Depends, HTTPException

from fortune_uploader.config import logger
from fortune_uploader.core.picker import HostPhotoPicker
from fortune_uploader.services.upload_service import UploadOrchestrator

from .dependencies import get_host_picker, get_orchestrator
from .models import (
    AccessTokenRequest,
    PhotoSelectionRequest,
    StartUploadRequest,
    StartUploadResponse,
    UploadStatusResponse,
)

router = APIRouter(prefix="/api/v1", tags=["Native Uploader"])


@router.post("/native/access-token")
async def set_access_token(
    payload: AccessTokenRequest,
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Store the bearer credential used by subsequent uploads."""

    orchestrator.set_access_token(payload.token)
    return {"success": True}


@router.post("/native/uploads", response_model=StartUploadResponse)
async def start_upload(
    payload: StartUploadRequest,
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
) -> StartUploadResponse:
    """Register a pick-and-upload request and start its pipeline."""

    request_id = orchestrator.begin_upload(payload.options)
    logger.info("Upload request accepted", extra={"request_id": request_id})
    return StartUploadResponse(request_id=request_id)


@router.post("/native/uploads/{request_id}/selection", status_code=202)
async def deliver_selection(
    request_id: str,
    payload: PhotoSelectionRequest,
    picker: HostPhotoPicker = Depends(get_host_picker),
) -> dict:
    """Hand the photo the user picked to the waiting pipeline."""

    if not picker.deliver_selection(request_id, payload.path):
        raise HTTPException(
            status_code=404,
            detail=f"No photo selection pending for request: {request_id}",
        )
    return {"accepted": True}


@router.post("/native/uploads/{request_id}/cancel", status_code=202)
async def deliver_cancellation(
    request_id: str,
    picker: HostPhotoPicker = Depends(get_host_picker),
) -> dict:
    """Report that the user dismissed the picker."""

    if not picker.deliver_cancellation(request_id):
        raise HTTPException(
            status_code=404,
            detail=f"No photo selection pending for request: {request_id}",
        )
    return {"accepted": True}


@router.get("/native/uploads/{request_id}", response_model=UploadStatusResponse)
async def get_upload_status(
    request_id: str,
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
) -> UploadStatusResponse:
    """Return the terminal outcome once, or a pending marker until then."""

    try:
        outcome = orchestrator.correlator.take(request_id)
    except KeyError:
        raise HTTPException(
            status_code=404,
            detail=f"Upload request not found: {request_id}",
        )

    if outcome is None:
        return UploadStatusResponse(request_id=request_id, status="pending")

    return UploadStatusResponse(
        request_id=request_id,
        status="done",
        result=outcome.to_bridge_payload(),
    )


@router.get("/health")
async def health_check() -> dict:
    """Simple health check endpoint."""

    return {
        "status": "healthy",
        "service": "fortune-uploader",
        "version": "1.0.0",
    }
