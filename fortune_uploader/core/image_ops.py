"""
Image reading operations.
Loads the selected photo into memory and reads its dimensions from the header.
"""

import io
from pathlib import Path
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from fortune_uploader.config import logger
from fortune_uploader.contexts import ImagePayload
from fortune_uploader.errors import ReadError


def decode_bounds(data: bytes) -> Tuple[int, int]:
    """
    Return (width, height) without decoding pixel data.

    Image.open only parses the header, so this stays cheap for large photos.
    Undecodable input gives (0, 0).
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.warning(f"Could not decode image bounds: {e}")
        return 0, 0

    return int(width), int(height)


def read_image(path: Path) -> ImagePayload:
    """
    Read a local image file fully into memory.

    Raises:
        ReadError: If the file cannot be opened or read
    """
    logger.info(f"Reading image from: {path}")

    try:
        data = Path(path).read_bytes()
    except OSError as e:
        logger.error(f"Error reading image: {e}")
        raise ReadError(f"Error reading image: {e}") from e

    width, height = decode_bounds(data)
    logger.info(f"Image dimensions: {width}x{height}, size: {len(data)} bytes")

    return ImagePayload(data=data, width=width, height=height)
