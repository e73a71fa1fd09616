"""
Upload ticket operations.
Asks the backend edge function for a short-lived storage upload authorization.
"""

from typing import Optional

import httpx

from fortune_uploader.config import logger, READ_TIMEOUT_SECONDS, TICKET_PATH
from fortune_uploader.errors import TicketError
from fortune_uploader.models import UploadTicket
from fortune_uploader.utils import (
    bearer_headers,
    build_timeout,
    describe_url,
    mask_token,
    preview,
)


async def issue_ticket(
    client: httpx.AsyncClient,
    server_base: str,
    access_token: Optional[str],
) -> UploadTicket:
    """
    Request an upload ticket from the backend.

    Args:
        client: HTTP client used for the call
        server_base: Backend base URL (no trailing slash)
        access_token: Bearer credential, sent when present

    Returns:
        UploadTicket: Ticket normalized from either response shape

    Raises:
        TicketError: On a non-200/201 status, transport failure or bad body
    """
    url = f"{server_base}{TICKET_PATH}"

    logger.info(f"Requesting upload ticket from: {server_base}")
    if access_token:
        logger.debug(f"Using access token: {mask_token(access_token)}")
    else:
        logger.warning("No access token available for ticket request")

    try:
        response = await client.post(
            url,
            json={},
            headers=bearer_headers(access_token),
            timeout=build_timeout(READ_TIMEOUT_SECONDS),
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error(f"Error issuing upload ticket: {e}")
        raise TicketError(f"Error issuing upload ticket: {e}") from e

    logger.debug(f"Upload ticket response code: {response.status_code}")

    if response.status_code not in (200, 201):
        logger.error(
            f"Failed to issue upload ticket: {response.status_code} - "
            f"{preview(response.text)}"
        )
        raise TicketError(f"Failed to issue upload ticket: {response.status_code}")

    try:
        payload = response.json()
    except ValueError as e:
        logger.error(f"Upload ticket response is not JSON: {preview(response.text)}")
        raise TicketError(f"Error issuing upload ticket: {e}") from e

    if not isinstance(payload, dict):
        logger.error(f"Upload ticket response is not an object: {preview(response.text)}")
        raise TicketError("Error issuing upload ticket: unexpected response body")

    ticket = UploadTicket.from_response(payload)

    logger.info(
        f"TICKET_OK uploadUrl={describe_url(ticket.upload_url)} "
        f"bucketRelativePath={ticket.bucket_relative_path}"
    )
    return ticket
