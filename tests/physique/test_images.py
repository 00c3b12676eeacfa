"""Tests for upload decoding."""

import cv2
import numpy as np

from core.config import settings
from shared.images import PLACEHOLDER_GRAY, decode_image, make_placeholder


def _png_bytes(width=64, height=32):
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, : width // 2] = (255, 0, 0)
    ok, buf = cv2.imencode(".png", frame)
    assert ok
    return buf.tobytes()


def test_decodes_png():
    decoded = decode_image(_png_bytes())

    assert not decoded.is_placeholder
    assert (decoded.width, decoded.height) == (64, 32)
    assert decoded.image.shape == (32, 64, 3)
    assert tuple(decoded.image[0, 0]) == (255, 0, 0)


def test_garbage_becomes_placeholder():
    decoded = decode_image(b"definitely not an image")

    assert decoded.is_placeholder
    assert decoded.width == settings.PLACEHOLDER_IMAGE_WIDTH
    assert decoded.height == settings.PLACEHOLDER_IMAGE_HEIGHT
    assert decoded.image.shape == (decoded.height, decoded.width, 3)
    assert np.all(decoded.image == PLACEHOLDER_GRAY)


def test_empty_upload_becomes_placeholder():
    assert decode_image(b"").is_placeholder


def test_placeholder_size_override():
    placeholder = make_placeholder(width=10, height=20)
    assert placeholder.image.shape == (20, 10, 3)
