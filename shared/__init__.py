"""
PHYSIQUE-AI Shared Module

Common utilities used across services.
"""

from .images import DecodedImage, decode_image, make_placeholder
from .utils import setup_logger, success_response, error_response

__all__ = [
    'DecodedImage',
    'decode_image',
    'make_placeholder',
    'setup_logger',
    'success_response',
    'error_response',
]
