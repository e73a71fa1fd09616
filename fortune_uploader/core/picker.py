"""
Photo picker adapters.
The pipeline suspends here until the user selects a photo or cancels.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, Optional

from fortune_uploader.config import logger
from fortune_uploader.errors import PickerError
from fortune_uploader.models import UploadOptions


class PhotoPicker(ABC):
    """
    Source of the photo to upload.

    pick() returns the selected file, or None when the user cancelled.
    """

    def open(self, request_id: str) -> None:
        """Called synchronously when a request is accepted, before pick()."""

    def discard(self, request_id: str) -> None:
        """Called once the request has a terminal outcome."""

    @abstractmethod
    async def pick(self, request_id: str, options: UploadOptions) -> Optional[Path]:
        pass


class HostPhotoPicker(PhotoPicker):
    """
    Picker driven by the embedding host.

    The host shows its own picker UI and reports back through
    deliver_selection() or deliver_cancellation().
    """

    def __init__(self, launcher: Optional[Callable[[str, UploadOptions], None]] = None):
        self._launcher = launcher
        self._pending: Dict[str, asyncio.Future] = {}

    def open(self, request_id: str) -> None:
        if request_id not in self._pending:
            self._pending[request_id] = asyncio.get_running_loop().create_future()

    def discard(self, request_id: str) -> None:
        future = self._pending.pop(request_id, None)
        if future is not None and not future.done():
            future.cancel()

    def is_waiting(self, request_id: str) -> bool:
        future = self._pending.get(request_id)
        return future is not None and not future.done()

    async def pick(self, request_id: str, options: UploadOptions) -> Optional[Path]:
        self.open(request_id)
        future = self._pending[request_id]

        try:
            if self._launcher is not None:
                logger.info(f"Launching photo picker for request: {request_id}")
                try:
                    self._launcher(request_id, options)
                except Exception as e:
                    logger.error(f"Failed to launch photo picker: {e}")
                    raise PickerError(f"Failed to launch photo picker: {e}") from e
            return await future
        finally:
            self._pending.pop(request_id, None)

    def _settle(self, request_id: str, value: Optional[Path]) -> bool:
        future = self._pending.get(request_id)
        if future is None or future.done():
            logger.error(f"No active request ID for photo picker result: {request_id}")
            return False
        future.set_result(value)
        return True

    def deliver_selection(self, request_id: str, path) -> bool:
        logger.info(f"Photo selected: {path} for request: {request_id}")
        return self._settle(request_id, Path(path))

    def deliver_cancellation(self, request_id: str) -> bool:
        logger.info(f"Photo picker cancelled for request: {request_id}")
        return self._settle(request_id, None)


class PathPhotoPicker(PhotoPicker):
    """Treats options.source as a local file path; anything else is a cancel."""

    async def pick(self, request_id: str, options: UploadOptions) -> Optional[Path]:
        if not options.source:
            logger.info(f"No source path given for request: {request_id}")
            return None

        path = Path(options.source).expanduser()
        if not path.is_file():
            logger.info(f"Source is not a file, treating as cancelled: {path}")
            return None

        logger.info(f"Photo selected: {path} for request: {request_id}")
        return path
