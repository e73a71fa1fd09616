"""Helpers for keeping credentials and long payloads out of the logs."""

from typing import Optional
from urllib.parse import urlsplit

import httpx

from fortune_uploader.config import CONNECT_TIMEOUT_SECONDS


def mask_token(token: Optional[str]) -> str:
    if not token:
        return "none"
    return "***" + token[-4:]


def describe_url(url: str, limit: int = 100) -> str:
    """Return host + path for logging, dropping any signed query string."""
    try:
        parts = urlsplit(url)
    except ValueError:
        parts = None

    if not parts or not parts.netloc:
        return url if len(url) <= limit else url[:limit] + "..."

    path = parts.path
    if len(path) > limit:
        path = path[:limit] + "..."
    return parts.netloc + path


def preview(text: Optional[str], limit: int = 300) -> str:
    if not text:
        return ""
    return text[:limit]


def bearer_headers(access_token: Optional[str]) -> dict:
    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    return headers


def build_timeout(read_seconds: float) -> httpx.Timeout:
    return httpx.Timeout(read_seconds, connect=CONNECT_TIMEOUT_SECONDS)
