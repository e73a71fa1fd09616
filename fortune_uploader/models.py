"""Pydantic models for upload options, backend payloads and terminal outcomes."""

from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from fortune_uploader.config import DEFAULT_BUCKET, DEFAULT_FORM_FIELD


class UploadOptions(BaseModel):
    """Caller-supplied options for a pick-and-upload request."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    fortune_id: Optional[str] = Field(None, alias="fortuneId")
    access_token: Optional[str] = Field(None, alias="accessToken")
    quality: Optional[float] = None
    allow_editing: Optional[bool] = Field(None, alias="allowEditing")
    source: Optional[str] = Field(
        None, description="Picker source hint, or a local file path for the path picker"
    )


def _text(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    return str(value)


def _header_value(value: Any) -> str:
    # JSON true/false arrive as Python bools
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class UploadTicket(BaseModel):
    """Short-lived upload authorization issued by the backend."""

    upload_url: str
    ticket_id: str = ""
    bucket: str = DEFAULT_BUCKET
    bucket_relative_path: str
    form_field_name: str = DEFAULT_FORM_FIELD
    required_headers: Optional[Dict[str, str]] = None
    fortune_id: Optional[str] = None

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "UploadTicket":
        """
        Normalize a ticket response into a single shape.

        Current responses carry bucketRelativePath/requiredHeaders/fortuneId,
        legacy ones path/headers/fortune_id. Current names win when both exist.
        """
        headers = payload.get("requiredHeaders")
        if not isinstance(headers, dict):
            headers = payload.get("headers")
        if not isinstance(headers, dict):
            headers = None

        fortune_id = _text(payload, "fortuneId") or _text(payload, "fortune_id")

        return cls(
            upload_url=_text(payload, "url"),
            ticket_id=_text(payload, "ticketId"),
            bucket=_text(payload, "bucket") or DEFAULT_BUCKET,
            bucket_relative_path=(
                _text(payload, "bucketRelativePath") or _text(payload, "path")
            ),
            form_field_name=_text(payload, "formFieldName") or DEFAULT_FORM_FIELD,
            required_headers=(
                {str(k): _header_value(v) for k, v in headers.items() if v is not None}
                if headers is not None
                else None
            ),
            fortune_id=fortune_id or None,
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.upload_url) and bool(self.bucket_relative_path)


class FinalizeResult(BaseModel):
    """Successful finalize response."""

    model_config = ConfigDict(populate_by_name=True)

    signed_url: str = Field(..., alias="signedUrl")
    replaced: bool = False


class UploadSuccess(BaseModel):
    status: Literal["success"] = "success"
    signed_url: str
    replaced: bool = False
    path: str
    width: int = 0
    height: int = 0

    def to_bridge_payload(self) -> Dict[str, Any]:
        return {
            "success": True,
            "signedUrl": self.signed_url,
            "replaced": self.replaced,
            "path": self.path,
            "width": self.width,
            "height": self.height,
        }


class UploadFailure(BaseModel):
    status: Literal["error"] = "error"
    error: str

    def to_bridge_payload(self) -> Dict[str, Any]:
        return {"success": False, "error": self.error}


class UploadCancelled(BaseModel):
    status: Literal["cancelled"] = "cancelled"

    def to_bridge_payload(self) -> Dict[str, Any]:
        return {"cancelled": True}


TerminalOutcome = Union[UploadSuccess, UploadFailure, UploadCancelled]
