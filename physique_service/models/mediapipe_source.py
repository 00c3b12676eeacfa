"""
PHYSIQUE-AI Physique Service - MediaPipe Keypoint Source

MediaPipe pose estimation exposed through the KeypointSource contract.
BlazePose's 33 landmarks are reduced to the 17 COCO names and scaled to
pixel coordinates so the rest of the pipeline stays detector-agnostic.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import cv2
import numpy as np

from core.config import settings
from core.threading import run_ml_inference
from shared.utils import log_execution_time

from .keypoints import Keypoint, Landmark, Pose

logger = logging.getLogger("physique.mediapipe")


# BlazePose landmark index for each COCO landmark
BLAZEPOSE_INDEX: Dict[Landmark, int] = {
    Landmark.NOSE: 0,
    Landmark.LEFT_EYE: 2,
    Landmark.RIGHT_EYE: 5,
    Landmark.LEFT_EAR: 7,
    Landmark.RIGHT_EAR: 8,
    Landmark.LEFT_SHOULDER: 11,
    Landmark.RIGHT_SHOULDER: 12,
    Landmark.LEFT_ELBOW: 13,
    Landmark.RIGHT_ELBOW: 14,
    Landmark.LEFT_WRIST: 15,
    Landmark.RIGHT_WRIST: 16,
    Landmark.LEFT_HIP: 23,
    Landmark.RIGHT_HIP: 24,
    Landmark.LEFT_KNEE: 25,
    Landmark.RIGHT_KNEE: 26,
    Landmark.LEFT_ANKLE: 27,
    Landmark.RIGHT_ANKLE: 28,
}


def _landmark_score(lm: Any) -> float:
    """Visibility if the detector reports it, else presence, clamped to [0, 1]."""
    score = getattr(lm, "visibility", None)
    if score is None:
        score = getattr(lm, "presence", None)
    if score is None:
        return 0.0
    return float(np.clip(score, 0.0, 1.0))


def landmarks_to_pose(landmarks: Sequence[Any], width: int, height: int) -> Pose:
    """
    Convert normalized MediaPipe landmarks to a pixel-space Pose.

    Landmark indices beyond the list (truncated output) are skipped, so the
    resulting pose simply lacks those keypoints.
    """
    keypoints = []
    for name, idx in BLAZEPOSE_INDEX.items():
        if idx >= len(landmarks):
            continue
        lm = landmarks[idx]
        keypoints.append(Keypoint(
            name=name.value,
            x=float(lm.x) * width,
            y=float(lm.y) * height,
            score=_landmark_score(lm),
        ))
    return Pose(keypoints=keypoints)


class MediaPipeKeypointSource:
    """
    MediaPipe-backed pose detector for still images.

    Uses the PoseLandmarker task when a model file is configured (supports
    several people per image), otherwise the legacy single-person solution.
    """

    def __init__(
        self,
        model_path: Optional[str] = None,
        model_complexity: Optional[int] = None,
        max_poses: Optional[int] = None,
        min_detection_confidence: Optional[float] = None,
    ):
        self.model_path = model_path if model_path is not None else settings.POSE_MODEL_PATH
        self.model_complexity = (
            model_complexity if model_complexity is not None else settings.POSE_MODEL_COMPLEXITY
        )
        self.max_poses = max_poses or settings.MAX_POSES
        self.min_detection_confidence = (
            min_detection_confidence
            if min_detection_confidence is not None
            else settings.MIN_DETECTION_CONFIDENCE
        )

        self._mp = None
        self.pose_detector = None
        self._uses_tasks_api = False

    async def ready(self) -> None:
        """Import the MediaPipe runtime."""
        import mediapipe as mp

        self._mp = mp
        logger.info(f"MediaPipe runtime ready (version {getattr(mp, '__version__', 'unknown')})")

    async def load(self) -> None:
        """Create the pose detector; runs on the inference worker."""
        if self._mp is None:
            await self.ready()
        self.pose_detector = await run_ml_inference(self._create_detector)
        logger.info(
            "✅ MediaPipe pose detector initialized "
            f"({'PoseLandmarker task' if self._uses_tasks_api else 'legacy solution'})"
        )

    def _create_detector(self):
        mp = self._mp
        if self.model_path:
            from mediapipe.tasks import python as mp_python
            from mediapipe.tasks.python import vision

            base_options = mp_python.BaseOptions(model_asset_path=self.model_path)
            options = vision.PoseLandmarkerOptions(
                base_options=base_options,
                running_mode=vision.RunningMode.IMAGE,
                num_poses=self.max_poses,
                min_pose_detection_confidence=self.min_detection_confidence,
            )
            self._uses_tasks_api = True
            return vision.PoseLandmarker.create_from_options(options)

        self._uses_tasks_api = False
        return mp.solutions.pose.Pose(
            static_image_mode=True,
            model_complexity=self.model_complexity,
            enable_segmentation=False,
            min_detection_confidence=self.min_detection_confidence,
        )

    async def estimate_poses(self, image: np.ndarray) -> List[Pose]:
        """
        Detect poses in a BGR image.

        Returns:
            Zero or more poses in pixel coordinates
        """
        if self.pose_detector is None:
            raise RuntimeError("Pose detector not loaded")
        return await run_ml_inference(self._detect, image)

    @log_execution_time
    def _detect(self, image: np.ndarray) -> List[Pose]:
        height, width = image.shape[:2]
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

        if self._uses_tasks_api:
            mp_image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=rgb)
            result = self.pose_detector.detect(mp_image)
            return [
                landmarks_to_pose(landmarks, width, height)
                for landmarks in result.pose_landmarks
            ]

        results = self.pose_detector.process(rgb)
        if not results.pose_landmarks:
            return []
        return [landmarks_to_pose(results.pose_landmarks.landmark, width, height)]

    def close(self):
        """Release detector resources."""
        if self.pose_detector and hasattr(self.pose_detector, 'close'):
            self.pose_detector.close()
        self.pose_detector = None
