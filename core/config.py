"""
PHYSIQUE-AI Configuration

Environment variables and application settings.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "PHYSIQUE-AI"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080"]

    # Thread Pool (pose inference is serialized on a single worker)
    ML_INFERENCE_WORKERS: int = 1

    # Pose Model
    POSE_MODEL_PATH: Optional[str] = None  # .task file for the PoseLandmarker API
    POSE_MODEL_COMPLEXITY: int = 2         # legacy solution API: 0, 1 or 2
    MAX_POSES: int = 1
    MIN_DETECTION_CONFIDENCE: float = 0.5
    POSE_SELECTION: str = "first"          # first | highest_confidence | largest_area
    INIT_ON_STARTUP: bool = True

    # Uploads
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    PLACEHOLDER_IMAGE_WIDTH: int = 640
    PLACEHOLDER_IMAGE_HEIGHT: int = 480

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
