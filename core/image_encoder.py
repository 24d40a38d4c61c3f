"""
Image encoding for API transport.
"""

import base64
import mimetypes
from pathlib import Path
from typing import Union

from config.logging_config import get_logger

from .errors import EncodeFailure

logger = get_logger(__name__)

DEFAULT_IMAGE_MIME = "image/jpeg"


def encode_image(path: Union[str, Path]) -> str:
    """
    Read an image file and return its base64 text.

    Raises:
        EncodeFailure: If the file is missing, unreadable or empty
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise EncodeFailure(path, e.strerror or str(e)) from e

    if not data:
        raise EncodeFailure(path, "file is empty")

    return base64.b64encode(data).decode("ascii")


def image_mime_type(path: Union[str, Path]) -> str:
    mime, _ = mimetypes.guess_type(str(path))
    if mime and mime.startswith("image/"):
        return mime
    return DEFAULT_IMAGE_MIME


def image_data_uri(path: Union[str, Path]) -> str:
    """Encode an image as a data URI suitable for an image_url content part."""
    encoded = encode_image(path)
    logger.debug(f"Encoded {Path(path).name}: {len(encoded)} chars")
    return f"data:{image_mime_type(path)};base64,{encoded}"
