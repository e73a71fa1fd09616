"""
Transfer operations.
Pushes the photo bytes straight to the storage URL named in the upload ticket.
"""

import asyncio
from typing import Awaitable, Callable, Dict, Optional

import httpx

from fortune_uploader.config import (
    logger,
    IMAGE_MIME_TYPE,
    SETTLE_DELAY_SECONDS,
    UPLOAD_FILENAME,
    UPLOAD_READ_TIMEOUT_SECONDS,
)
from fortune_uploader.errors import TransferError
from fortune_uploader.utils import build_timeout, describe_url, preview

SUCCESS_STATUSES = (200, 201, 204)


def build_upload_headers(required_headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    """
    Copy the ticket's required headers onto the upload request.

    Empty values are skipped. Content-Type is left to the multipart encoder,
    which owns the boundary. Without ticket headers, x-upsert: true is sent.
    """
    if required_headers is None:
        logger.warning("No headers/requiredHeaders in ticket, using default x-upsert:true")
        return {"x-upsert": "true"}

    headers = {}
    for key, value in required_headers.items():
        if not value or key.lower() == "content-type":
            continue
        headers[key] = value
        logger.debug(f"Applied required header: {key}: {value}")
    return headers


async def upload_photo(
    client: httpx.AsyncClient,
    upload_url: str,
    data: bytes,
    form_field_name: str,
    required_headers: Optional[Dict[str, str]],
    settle_seconds: float = SETTLE_DELAY_SECONDS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """
    Upload image bytes as multipart/form-data.

    Args:
        client: HTTP client used for the call
        upload_url: Signed storage URL from the ticket
        data: Raw image bytes
        form_field_name: Name of the multipart file part
        required_headers: Headers demanded by the ticket, or None
        settle_seconds: Pause after a successful upload so the object shows
            up in listings before verification
        sleep: Awaitable sleep used for the settling pause

    Raises:
        TransferError: On a status outside 200/201/204 or a transport failure
    """
    headers = build_upload_headers(required_headers)
    files = {form_field_name: (UPLOAD_FILENAME, data, IMAGE_MIME_TYPE)}

    logger.info(f"Uploading {len(data)} bytes to: {describe_url(upload_url)}")

    try:
        response = await client.post(
            upload_url,
            files=files,
            headers=headers,
            timeout=build_timeout(UPLOAD_READ_TIMEOUT_SECONDS),
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error(f"Error uploading image: {e}")
        raise TransferError(f"Error uploading image: {e}") from e

    body_preview = preview(response.text)

    if response.status_code not in SUCCESS_STATUSES:
        logger.error(f"UPLOAD_FAIL status={response.status_code} body={body_preview}")
        raise TransferError(f"Failed to upload image: {response.status_code}")

    logger.info(f"UPLOAD_OK status={response.status_code} body={body_preview}")

    if settle_seconds > 0:
        await sleep(settle_seconds)
