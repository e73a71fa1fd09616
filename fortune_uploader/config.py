"""
Configuration module for the fortune photo uploader
Contains logger setup, environment variables and protocol constants
"""

import os
import logging
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


# -------------------------
# Logger Setup
# -------------------------
def setup_logger(
    name: str = __name__, log_file: Optional[str] = "fortune_uploader.log"
) -> logging.Logger:
    """
    Set up and return a logger with file and console handlers

    Args:
        name: Logger name (usually __name__)
        log_file: Path to log file, or None/empty to log to the console only

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


LOG_FILE = os.getenv("LOG_FILE", "fortune_uploader.log")

# Create the main application logger
logger = setup_logger("fortune_uploader", LOG_FILE)

# -------------------------
# Environment Variables
# -------------------------
DEFAULT_SERVER_URL = "https://fortune-magnet.vercel.app"

FORTUNE_SERVER_URL = os.getenv("FORTUNE_SERVER_URL", DEFAULT_SERVER_URL)
SUPABASE_URL = os.getenv("SUPABASE_URL")
FORTUNE_ACCESS_TOKEN = os.getenv("FORTUNE_ACCESS_TOKEN")

# -------------------------
# Protocol Constants
# -------------------------
TICKET_PATH = "/functions/v1/issue-fortune-upload-ticket"
FINALIZE_PATH = "/functions/v1/finalize-fortune-photo"
STORAGE_LIST_PATH = "/storage/v1/object/list"

DEFAULT_BUCKET = "photos"
DEFAULT_FORM_FIELD = "file"
UPLOAD_FILENAME = "photo.jpg"
IMAGE_MIME_TYPE = "image/jpeg"

CONNECT_TIMEOUT_SECONDS = 10.0
READ_TIMEOUT_SECONDS = 30.0
UPLOAD_READ_TIMEOUT_SECONDS = 60.0

SETTLE_DELAY_SECONDS = 1.0
FINALIZE_MAX_ATTEMPTS = 3
FINALIZE_BACKOFF_SECONDS = 1.0


def resolve_backend_url(server_url: Optional[str]) -> Optional[str]:
    """
    Pick the backend base URL for edge functions and storage calls.

    The host hands us the URL its web view points at. Edge functions and
    storage live on Supabase, so a non-Supabase server URL falls back to
    SUPABASE_URL.
    """
    if server_url and "supabase.co" in server_url:
        return server_url.rstrip("/")

    if SUPABASE_URL:
        return SUPABASE_URL.rstrip("/")

    return None


# Log configuration status
logger.info("Configuration loaded successfully")
logger.debug(f"FORTUNE_SERVER_URL configured: {bool(FORTUNE_SERVER_URL)}")
logger.debug(f"SUPABASE_URL configured: {bool(SUPABASE_URL)}")
logger.debug(f"FORTUNE_ACCESS_TOKEN configured: {bool(FORTUNE_ACCESS_TOKEN)}")
