"""
PHYSIQUE-AI Shared Utilities

Logging, response models, and timing helpers.
"""

import asyncio
import logging
import sys
from typing import Any, Optional, TypeVar, Generic
from datetime import datetime, timezone
from functools import wraps
import time

from pydantic import BaseModel


# ============================================
# Logging Configuration
# ============================================

def setup_logger(name: str = "physique", level: int = logging.INFO) -> logging.Logger:
    """
    Set up a configured logger with console output.

    Usage:
        logger = setup_logger(__name__)
        logger.info("Hello from PHYSIQUE-AI")
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


# Default logger for imports
logger = setup_logger("physique")


# ============================================
# Response Models
# ============================================

T = TypeVar('T')


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""
    success: bool = True
    message: str = "Operation completed successfully"
    data: Optional[T] = None
    timestamp: str = ""

    def __init__(self, **data):
        if "timestamp" not in data or not data["timestamp"]:
            data["timestamp"] = get_now_iso()
        super().__init__(**data)


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    error_code: Optional[str] = None
    details: Optional[dict] = None
    timestamp: str = ""

    def __init__(self, **data):
        if "timestamp" not in data or not data["timestamp"]:
            data["timestamp"] = get_now_iso()
        super().__init__(**data)


def success_response(data: Any = None, message: str = "Success") -> dict:
    """Create a success response dict."""
    return APIResponse(data=data, message=message).model_dump()


def error_response(error: str, error_code: str = None, details: dict = None) -> dict:
    """Create an error response dict."""
    return ErrorResponse(error=error, error_code=error_code, details=details).model_dump()


# ============================================
# Decorators
# ============================================

def log_execution_time(func):
    """Decorator to log function execution time."""
    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = await func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(f"{func.__name__} executed in {elapsed:.2f}ms")
        return result

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(f"{func.__name__} executed in {elapsed:.2f}ms")
        return result

    if asyncio.iscoroutinefunction(func):
        return async_wrapper
    return sync_wrapper


# ============================================
# Utility Functions
# ============================================

def get_now_iso() -> str:
    """Get current UTC datetime as ISO string."""
    return datetime.now(timezone.utc).isoformat()


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))
