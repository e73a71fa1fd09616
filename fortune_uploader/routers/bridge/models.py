"""Pydantic models used by the native bridge router."""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from fortune_uploader.models import UploadOptions


class AccessTokenRequest(BaseModel):
    """Credential pushed by the host on its refresh interval."""

    token: Optional[str] = None


class StartUploadRequest(BaseModel):
    options: UploadOptions = Field(default_factory=UploadOptions)


class StartUploadResponse(BaseModel):
    request_id: str


class PhotoSelectionRequest(BaseModel):
    path: str = Field(..., description="Local path of the photo the user picked")


class UploadStatusResponse(BaseModel):
    """Pending marker, or the terminal outcome in the bridge wire shape."""

    request_id: str
    status: Literal["pending", "done"]
    result: Optional[Dict[str, Any]] = None
