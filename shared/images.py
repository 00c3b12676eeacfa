"""
PHYSIQUE-AI Image Decoding

Turns uploaded bytes into an OpenCV BGR array. Undecodable uploads are
replaced by a neutral placeholder image rather than raising.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from core.config import settings

logger = logging.getLogger("physique.images")

PLACEHOLDER_GRAY = 128


@dataclass
class DecodedImage:
    """A decoded raster image plus its pixel size."""
    image: np.ndarray
    width: int
    height: int
    is_placeholder: bool = False


def make_placeholder(width: Optional[int] = None, height: Optional[int] = None) -> DecodedImage:
    """Uniform gray BGR image used when an upload can't be decoded."""
    width = width or settings.PLACEHOLDER_IMAGE_WIDTH
    height = height or settings.PLACEHOLDER_IMAGE_HEIGHT
    image = np.full((height, width, 3), PLACEHOLDER_GRAY, dtype=np.uint8)
    return DecodedImage(image=image, width=width, height=height, is_placeholder=True)


def decode_image(data: bytes) -> DecodedImage:
    """
    Decode image bytes (JPEG, PNG, ...) into a BGR numpy array.

    Args:
        data: Raw file contents

    Returns:
        DecodedImage; ``is_placeholder`` is set when decoding failed
    """
    if not data:
        logger.warning("⚠️ Empty image upload, using placeholder")
        return make_placeholder()

    nparr = np.frombuffer(data, np.uint8)
    frame = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

    if frame is None or frame.size == 0:
        logger.warning(f"⚠️ Could not decode {len(data)} bytes as an image, using placeholder")
        return make_placeholder()

    height, width = frame.shape[:2]
    logger.debug(f"Decoded image {width}x{height}")
    return DecodedImage(image=frame, width=width, height=height)
