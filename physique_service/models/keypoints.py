"""
PHYSIQUE-AI Physique Service - Keypoints

Landmark names, detected keypoints/poses, the keypoint source contract,
and the policy used to pick one pose when several people are detected.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Sequence, runtime_checkable

import numpy as np


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS AND DATA CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class Landmark(str, Enum):
    """COCO body landmarks, named the way MoveNet-style detectors report them."""
    NOSE = "nose"
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_WRIST = "right_wrist"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_ANKLE = "left_ankle"
    RIGHT_ANKLE = "right_ankle"


class PoseSelection(str, Enum):
    """How to choose one pose when the source returns several."""
    FIRST = "first"
    HIGHEST_CONFIDENCE = "highest_confidence"
    LARGEST_AREA = "largest_area"


@dataclass(frozen=True)
class Keypoint:
    """A detected landmark in pixel coordinates."""
    name: str
    x: float
    y: float
    score: float


@dataclass
class Pose:
    """All keypoints detected for one person."""
    keypoints: List[Keypoint] = field(default_factory=list)

    @property
    def average_score(self) -> float:
        if not self.keypoints:
            return 0.0
        return float(np.mean([kp.score for kp in self.keypoints]))

    @property
    def bounding_box_area(self) -> float:
        """Pixel area of the axis-aligned box around all keypoints."""
        if not self.keypoints:
            return 0.0
        xs = [kp.x for kp in self.keypoints]
        ys = [kp.y for kp in self.keypoints]
        return (max(xs) - min(xs)) * (max(ys) - min(ys))

    def to_dict(self) -> dict:
        return {
            "keypoints": [
                {"name": kp.name, "x": kp.x, "y": kp.y, "score": round(kp.score, 3)}
                for kp in self.keypoints
            ]
        }


# ═══════════════════════════════════════════════════════════════════════════════
# KEYPOINT SOURCE CONTRACT
# ═══════════════════════════════════════════════════════════════════════════════

@runtime_checkable
class KeypointSource(Protocol):
    """
    Anything that can turn an image into zero or more poses.

    ``ready`` brings up the numerical runtime, ``load`` loads model weights.
    Both are called once, in that order, before the first ``estimate_poses``.
    """

    async def ready(self) -> None:
        ...

    async def load(self) -> None:
        ...

    async def estimate_poses(self, image: np.ndarray) -> List[Pose]:
        ...


def select_pose(poses: Sequence[Pose], policy: PoseSelection = PoseSelection.FIRST) -> Optional[Pose]:
    """
    Pick the pose to rate.

    FIRST keeps the detector's order and is the default; it is a
    simplification, not a quality heuristic. Ties under the other
    policies fall back to detector order.
    """
    if not poses:
        return None
    if policy == PoseSelection.HIGHEST_CONFIDENCE:
        return max(poses, key=lambda p: p.average_score)
    if policy == PoseSelection.LARGEST_AREA:
        return max(poses, key=lambda p: p.bounding_box_area)
    return poses[0]
