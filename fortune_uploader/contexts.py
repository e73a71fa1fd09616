"""Lightweight dataclasses handed between pipeline stages."""

from dataclasses import dataclass, field
from typing import Optional

from fortune_uploader.models import UploadOptions, UploadTicket


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    width: int = 0
    height: int = 0

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass
class UploadState:
    """Everything one request owns while its pipeline runs."""

    request_id: str
    options: UploadOptions = field(default_factory=UploadOptions)
    access_token: Optional[str] = None
    server_base: Optional[str] = None
    image: Optional[ImagePayload] = None
    ticket: Optional[UploadTicket] = None

    def resolve_fortune_id(self) -> str:
        """Caller option first, then the ticket's fortune id, then the ticket id."""
        if self.options.fortune_id:
            return self.options.fortune_id
        if self.ticket is None:
            return ""
        return self.ticket.fortune_id or self.ticket.ticket_id
