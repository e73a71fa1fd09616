"""Upload orchestration: pick, ticket, transfer, verify, finalize."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import httpx

from fortune_uploader.config import (
    logger,
    FINALIZE_BACKOFF_SECONDS,
    FINALIZE_MAX_ATTEMPTS,
    FORTUNE_ACCESS_TOKEN,
    FORTUNE_SERVER_URL,
    SETTLE_DELAY_SECONDS,
    resolve_backend_url,
)
from fortune_uploader.contexts import UploadState
from fortune_uploader.core.finalize_ops import finalize_photo
from fortune_uploader.core.image_ops import read_image
from fortune_uploader.core.picker import PathPhotoPicker, PhotoPicker
from fortune_uploader.core.ticket_ops import issue_ticket
from fortune_uploader.core.transfer_ops import upload_photo
from fortune_uploader.core.verify_ops import object_exists
from fortune_uploader.errors import (
    FinalizeError,
    TicketError,
    UploadError,
    UploadInProgress,
    VerificationFailed,
)
from fortune_uploader.models import (
    FinalizeResult,
    TerminalOutcome,
    UploadCancelled,
    UploadFailure,
    UploadOptions,
    UploadSuccess,
)
from fortune_uploader.services.correlator import RequestCorrelator
from fortune_uploader.utils import mask_token


def _log(level: int, message: str, **context: Any) -> None:
    """Helper to emit structured logs with contextual metadata."""
    logger.log(level, "%s | context=%s", message, context)


class UploadOrchestrator:
    """
    Runs one pick-and-upload pipeline at a time.

    Each accepted request gets its own UploadState, captured when the request
    starts and owned by the pipeline task until the outcome is resolved. A
    request that arrives while another is running is rejected with an error
    outcome.
    """

    def __init__(
        self,
        picker: Optional[PhotoPicker] = None,
        correlator: Optional[RequestCorrelator] = None,
        server_url_provider: Optional[Callable[[], Optional[str]]] = None,
        access_token: Optional[str] = FORTUNE_ACCESS_TOKEN,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        settle_seconds: float = SETTLE_DELAY_SECONDS,
        finalize_max_attempts: int = FINALIZE_MAX_ATTEMPTS,
        finalize_backoff_seconds: float = FINALIZE_BACKOFF_SECONDS,
    ):
        self.picker = picker or PathPhotoPicker()
        self.correlator = correlator or RequestCorrelator()
        self._server_url_provider = server_url_provider or (lambda: FORTUNE_SERVER_URL)
        self._access_token = access_token
        self._transport = transport
        self._sleep = sleep
        self._settle_seconds = settle_seconds
        self._finalize_max_attempts = finalize_max_attempts
        self._finalize_backoff_seconds = finalize_backoff_seconds
        self._active_request_id: Optional[str] = None
        self._tasks: Dict[asyncio.Task, str] = {}

    @property
    def active_request_id(self) -> Optional[str]:
        return self._active_request_id

    def set_access_token(self, token: Optional[str]) -> None:
        """Store the host-refreshed credential used by the next request."""
        self._access_token = token or None
        logger.debug(f"Access token set: {mask_token(self._access_token)}")

    def begin_upload(
        self, options: Union[UploadOptions, Dict[str, Any], None] = None
    ) -> str:
        """
        Accept a request and start its pipeline in the background.

        Must be called from a running event loop. The outcome is delivered
        through the correlator; see wait_for_outcome().

        Returns:
            str: The request id
        """
        if not isinstance(options, UploadOptions):
            options = UploadOptions.model_validate(options or {})

        request_id = self.correlator.next_request_id()
        self.correlator.register(request_id)

        if self._active_request_id is not None:
            _log(
                logging.WARNING,
                "upload_rejected",
                request_id=request_id,
                active_request_id=self._active_request_id,
            )
            self.correlator.resolve(
                request_id, UploadFailure(error=UploadInProgress().message)
            )
            return request_id

        if options.access_token:
            self._access_token = options.access_token
            logger.debug("Using access token from options")

        state = UploadState(
            request_id=request_id,
            options=options,
            access_token=self._access_token,
        )

        self._active_request_id = request_id
        self.picker.open(request_id)

        task = asyncio.create_task(self._run(state))
        self._tasks[task] = request_id
        task.add_done_callback(lambda done: self._tasks.pop(done, None))

        _log(logging.INFO, "upload_started", request_id=request_id)
        return request_id

    async def wait_for_outcome(self, request_id: str) -> TerminalOutcome:
        return await self.correlator.wait(request_id)

    async def pick_and_upload(
        self, options: Union[UploadOptions, Dict[str, Any], None] = None
    ) -> TerminalOutcome:
        """Start an upload and wait for its terminal outcome."""
        request_id = self.begin_upload(options)
        return await self.wait_for_outcome(request_id)

    async def aclose(self) -> None:
        """Cancel running pipelines. Their callers receive an error outcome."""
        running = dict(self._tasks)
        for task in running:
            task.cancel()
        if running:
            await asyncio.gather(*running, return_exceptions=True)

        # a task cancelled before its first step never reaches _run's handlers
        for request_id in running.values():
            if self.correlator.is_pending(request_id):
                self._finish(request_id, UploadFailure(error="Upload interrupted"))

    async def _run(self, state: UploadState) -> None:
        try:
            outcome = await self._execute(state)
        except UploadError as exc:
            _log(
                logging.ERROR,
                "upload_failed",
                request_id=state.request_id,
                error=exc.message,
            )
            outcome = UploadFailure(error=exc.message)
        except asyncio.CancelledError:
            self._finish(state.request_id, UploadFailure(error="Upload interrupted"))
            raise
        except Exception as exc:
            logger.error("Error processing image", exc_info=True)
            outcome = UploadFailure(error=f"Error processing image: {exc}")

        self._finish(state.request_id, outcome)

    def _finish(self, request_id: str, outcome: TerminalOutcome) -> None:
        # clear the active marker before the caller can observe the outcome
        if self._active_request_id == request_id:
            self._active_request_id = None
        self.picker.discard(request_id)
        self.correlator.resolve(request_id, outcome)

    async def _execute(self, state: UploadState) -> TerminalOutcome:
        path = await self.picker.pick(state.request_id, state.options)
        if path is None:
            _log(logging.INFO, "upload_cancelled", request_id=state.request_id)
            return UploadCancelled()

        state.image = await asyncio.to_thread(read_image, path)

        state.server_base = resolve_backend_url(self._server_url_provider())
        if not state.server_base:
            logger.error("Server URL not available")
            raise UploadError("Server URL not configured")

        async with httpx.AsyncClient(transport=self._transport) as client:
            state.ticket = await issue_ticket(
                client, state.server_base, state.access_token
            )

            if not state.ticket.is_complete:
                logger.error("Invalid ticket response: missing url or path")
                raise TicketError("Invalid upload ticket response: missing url or path")

            await upload_photo(
                client,
                state.ticket.upload_url,
                state.image.data,
                state.ticket.form_field_name,
                state.ticket.required_headers,
                settle_seconds=self._settle_seconds,
                sleep=self._sleep,
            )

            visible = await object_exists(
                client,
                state.server_base,
                state.access_token,
                state.ticket.bucket,
                state.ticket.bucket_relative_path,
            )
            if not visible:
                logger.error("VERIFY_FAIL: Upload did not persist, stopping")
                raise VerificationFailed(
                    "Upload verification failed: file not found in storage"
                )

            result = await self._finalize_with_retry(client, state)

        _log(
            logging.INFO,
            "upload_completed",
            request_id=state.request_id,
            path=state.ticket.bucket_relative_path,
            replaced=result.replaced,
        )

        return UploadSuccess(
            signed_url=result.signed_url,
            replaced=result.replaced,
            path=state.ticket.bucket_relative_path,
            width=state.image.width,
            height=state.image.height,
        )

    async def _finalize_with_retry(
        self, client: httpx.AsyncClient, state: UploadState
    ) -> FinalizeResult:
        fortune_id = state.resolve_fortune_id()
        max_attempts = self._finalize_max_attempts

        for attempt in range(max_attempts):
            _log(
                logging.INFO,
                "finalize_attempt",
                request_id=state.request_id,
                attempt=attempt + 1,
                max_attempts=max_attempts,
            )

            try:
                return await finalize_photo(
                    client,
                    state.server_base,
                    state.access_token,
                    fortune_id,
                    state.ticket.bucket,
                    state.ticket.bucket_relative_path,
                    width=state.image.width,
                    height=state.image.height,
                    size_bytes=state.image.size_bytes,
                )
            except FinalizeError as exc:
                if attempt == max_attempts - 1:
                    logger.error(
                        f"Failed to finalize photo after {max_attempts} attempts"
                    )
                    if exc.status_code:
                        raise FinalizeError(
                            f"Failed to finalize photo after {max_attempts} "
                            f"attempts: {exc.status_code}",
                            status_code=exc.status_code,
                        ) from exc
                    raise

                wait_seconds = self._finalize_backoff_seconds * (attempt + 1)
                _log(
                    logging.WARNING,
                    "finalize_retry",
                    request_id=state.request_id,
                    wait_ms=int(wait_seconds * 1000),
                    retries_left=max_attempts - attempt - 1,
                    error=exc.message,
                )
                await self._sleep(wait_seconds)

        raise FinalizeError(f"Failed to finalize photo after {max_attempts} attempts")
