"""
Verification operations.
Confirms an uploaded object is visible in the storage listing before finalize.
"""

from typing import Optional, Tuple
from urllib.parse import quote

import httpx

from fortune_uploader.config import logger, READ_TIMEOUT_SECONDS, STORAGE_LIST_PATH
from fortune_uploader.utils import build_timeout, preview


def split_object_path(path: str) -> Tuple[str, str]:
    """Split a bucket-relative path into (folder, filename) at the last slash."""
    folder, _, filename = path.rpartition("/")
    return folder, filename


def build_list_url(server_base: str, bucket: str, path: str) -> str:
    folder, filename = split_object_path(path)

    url = f"{server_base}{STORAGE_LIST_PATH}/{bucket}"
    if folder:
        url += "/" + quote(folder, safe="")
    return url + "?search=" + quote(filename, safe="")


async def object_exists(
    client: httpx.AsyncClient,
    server_base: str,
    access_token: Optional[str],
    bucket: str,
    path: str,
) -> bool:
    """
    Check whether an object shows up in the storage listing.

    Returns True only for a 200 response whose JSON body is a non-empty list.
    Every failure, including a missing token, yields False.
    """
    if not access_token:
        logger.warning("No access token for verification")
        return False

    url = build_list_url(server_base, bucket, path)

    try:
        response = await client.get(
            url,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {access_token}",
            },
            timeout=build_timeout(READ_TIMEOUT_SECONDS),
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error(f"Error verifying upload in storage: {e}")
        return False

    if response.status_code != 200:
        logger.error(
            f"VERIFY_FAIL status={response.status_code} body={preview(response.text)}"
        )
        return False

    try:
        entries = response.json()
    except ValueError as e:
        logger.error(f"Failed to parse verification response: {e}")
        return False

    if not isinstance(entries, list):
        logger.error(f"Unexpected verification response: {preview(response.text)}")
        return False

    logger.info(f"VERIFY_OK matches={len(entries)}")
    return len(entries) > 0
