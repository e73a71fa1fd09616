"""
Finalize operations.
Tells the backend an uploaded photo is in place and gets back its signed URL.
"""

from typing import Any, Dict, Optional

import httpx

from fortune_uploader.config import (
    logger,
    FINALIZE_PATH,
    IMAGE_MIME_TYPE,
    READ_TIMEOUT_SECONDS,
)
from fortune_uploader.errors import FinalizeError
from fortune_uploader.models import FinalizeResult
from fortune_uploader.utils import bearer_headers, build_timeout, preview


def build_finalize_body(
    fortune_id: str,
    bucket: str,
    path: str,
    width: int = 0,
    height: int = 0,
    size_bytes: int = 0,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "fortune_id": fortune_id,
        "bucket": bucket,
        "path": path,
        "mime": IMAGE_MIME_TYPE,
    }
    # numeric metadata only when known
    if width > 0:
        body["width"] = width
    if height > 0:
        body["height"] = height
    if size_bytes > 0:
        body["size_bytes"] = size_bytes
    return body


def parse_replaced(value: Any) -> bool:
    """Accept JSON booleans and "true"/"false" strings; anything else is False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


async def finalize_photo(
    client: httpx.AsyncClient,
    server_base: str,
    access_token: Optional[str],
    fortune_id: str,
    bucket: str,
    path: str,
    width: int = 0,
    height: int = 0,
    size_bytes: int = 0,
) -> FinalizeResult:
    """
    Finalize an uploaded photo. Makes exactly one attempt.

    Args:
        client: HTTP client used for the call
        server_base: Backend base URL
        access_token: Bearer credential, sent when present
        fortune_id: Fortune the photo belongs to
        bucket: Storage bucket name
        path: Bucket-relative object path (no bucket prefix)
        width: Image width in pixels, omitted when 0
        height: Image height in pixels, omitted when 0
        size_bytes: Payload size, omitted when 0

    Returns:
        FinalizeResult: Signed URL and replaced flag

    Raises:
        FinalizeError: On a non-200/201 status, transport failure, or a body
            without signedUrl
    """
    if not access_token:
        logger.warning("No access token available for finalize request")

    try:
        response = await client.post(
            f"{server_base}{FINALIZE_PATH}",
            json=build_finalize_body(fortune_id, bucket, path, width, height, size_bytes),
            headers=bearer_headers(access_token),
            timeout=build_timeout(READ_TIMEOUT_SECONDS),
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"Error finalizing photo: {e}")
        raise FinalizeError(f"Error finalizing photo: {e}") from e

    if response.status_code not in (200, 201):
        logger.warning(
            f"FINALIZE_FAIL status={response.status_code} body={preview(response.text)}"
        )
        raise FinalizeError(
            f"Failed to finalize photo: {response.status_code}",
            status_code=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as e:
        logger.warning(f"Finalize response is not JSON: {preview(response.text)}")
        raise FinalizeError(f"Error finalizing photo: {e}") from e

    signed_url = payload.get("signedUrl") if isinstance(payload, dict) else None
    if not signed_url:
        logger.warning(f"Finalize response missing signedUrl: {preview(response.text)}")
        raise FinalizeError("Error finalizing photo: response missing signedUrl")

    result = FinalizeResult(
        signed_url=str(signed_url),
        replaced=parse_replaced(payload.get("replaced")),
    )

    shown = result.signed_url
    logger.info(f"FINALIZE_OK signedUrl={shown[:80] + '...' if len(shown) > 80 else shown}")
    return result
