"""
PHYSIQUE-AI Physique Service - Feature Extractor

Turns one pose's pixel keypoints into image-relative geometric features:
segment lengths, widths, left/right level symmetry and a posture score.

Missing landmarks never raise. A distance with a missing endpoint is 0,
and symmetry/midpoint math reads a missing coordinate as 0, so partial
detections still rate (low) instead of failing.
"""

import math
from dataclasses import dataclass, asdict
from typing import Dict, Optional

from shared.utils import clamp

from .keypoints import Landmark, Pose

NEUTRAL_POSTURE = 0.5


@dataclass(frozen=True)
class NormalizedPoint:
    """A keypoint as a fraction of image width/height."""
    x: float
    y: float
    confidence: float


@dataclass(frozen=True)
class FeatureSet:
    """Geometric measurements for one pose, all in normalized image units."""
    shoulder_width: float
    left_arm_thickness: float
    right_arm_thickness: float
    chest_to_hip_ratio: float
    hip_width: float
    left_thigh_length: float
    right_thigh_length: float
    left_calf_length: float
    right_calf_length: float
    torso_length: float
    shoulder_symmetry: float
    hip_symmetry: float
    posture: float
    average_confidence: float

    def to_dict(self) -> Dict[str, float]:
        return {k: round(v, 4) for k, v in asdict(self).items()}


LandmarkMap = Dict[Landmark, Optional[NormalizedPoint]]


def normalize_keypoints(pose: Pose, width: float, height: float) -> LandmarkMap:
    """
    Map every known landmark to its normalized point, or None if absent.

    Coordinates are clamped to [0, 1], so landmarks reported beyond the
    frame sit on its edge. Unknown keypoint names are ignored. If a name
    repeats, the first occurrence wins.
    """
    points: LandmarkMap = {landmark: None for landmark in Landmark}
    for kp in pose.keypoints:
        try:
            landmark = Landmark(kp.name)
        except ValueError:
            continue
        if points[landmark] is None:
            points[landmark] = NormalizedPoint(
                x=clamp(kp.x / width, 0.0, 1.0),
                y=clamp(kp.y / height, 0.0, 1.0),
                confidence=kp.score,
            )
    return points


def distance(a: Optional[NormalizedPoint], b: Optional[NormalizedPoint]) -> float:
    """Euclidean distance; 0 when either point is missing."""
    if a is None or b is None:
        return 0.0
    return math.hypot(a.x - b.x, a.y - b.y)


def _coord(point: Optional[NormalizedPoint], axis: str) -> float:
    return getattr(point, axis) if point is not None else 0.0


def _midpoint(a: Optional[NormalizedPoint], b: Optional[NormalizedPoint]) -> NormalizedPoint:
    return NormalizedPoint(
        x=(_coord(a, "x") + _coord(b, "x")) / 2,
        y=(_coord(a, "y") + _coord(b, "y")) / 2,
        confidence=0.0,
    )


def level_symmetry(left: Optional[NormalizedPoint], right: Optional[NormalizedPoint]) -> float:
    """1 - |y_left - y_right|, reading a missing side as y = 0."""
    return 1 - abs(_coord(left, "y") - _coord(right, "y"))


def calculate_posture(points: LandmarkMap) -> float:
    """
    Mean of shoulder level, hip level and nose-over-hips alignment.

    Returns NEUTRAL_POSTURE unless the nose and both shoulders and hips
    are all present.
    """
    nose = points[Landmark.NOSE]
    left_shoulder = points[Landmark.LEFT_SHOULDER]
    right_shoulder = points[Landmark.RIGHT_SHOULDER]
    left_hip = points[Landmark.LEFT_HIP]
    right_hip = points[Landmark.RIGHT_HIP]

    if any(pt is None for pt in (nose, left_shoulder, right_shoulder, left_hip, right_hip)):
        return NEUTRAL_POSTURE

    shoulder_level = 1 - abs(left_shoulder.y - right_shoulder.y)
    hip_level = 1 - abs(left_hip.y - right_hip.y)
    hip_center_x = (left_hip.x + right_hip.x) / 2
    spine_alignment = 1 - abs(nose.x - hip_center_x)

    return (shoulder_level + hip_level + spine_alignment) / 3


def extract_features(pose: Pose, image_width: float, image_height: float) -> FeatureSet:
    """
    Compute the feature set for a pose detected in an image of the given size.

    Args:
        pose: Detected pose in pixel coordinates
        image_width, image_height: Positive image dimensions in pixels
    """
    p = normalize_keypoints(pose, image_width, image_height)

    shoulder_width = distance(p[Landmark.LEFT_SHOULDER], p[Landmark.RIGHT_SHOULDER])
    hip_width = distance(p[Landmark.LEFT_HIP], p[Landmark.RIGHT_HIP])

    # No hips means no meaningful ratio; 0 rates as the range minimum
    chest_to_hip_ratio = shoulder_width / hip_width if hip_width > 0 else 0.0

    torso_length = distance(
        _midpoint(p[Landmark.LEFT_SHOULDER], p[Landmark.RIGHT_SHOULDER]),
        _midpoint(p[Landmark.LEFT_HIP], p[Landmark.RIGHT_HIP]),
    )

    if pose.keypoints:
        average_confidence = sum(kp.score for kp in pose.keypoints) / len(pose.keypoints)
    else:
        average_confidence = 0.0

    return FeatureSet(
        shoulder_width=shoulder_width,
        left_arm_thickness=distance(p[Landmark.LEFT_SHOULDER], p[Landmark.LEFT_ELBOW]),
        right_arm_thickness=distance(p[Landmark.RIGHT_SHOULDER], p[Landmark.RIGHT_ELBOW]),
        chest_to_hip_ratio=chest_to_hip_ratio,
        hip_width=hip_width,
        left_thigh_length=distance(p[Landmark.LEFT_HIP], p[Landmark.LEFT_KNEE]),
        right_thigh_length=distance(p[Landmark.RIGHT_HIP], p[Landmark.RIGHT_KNEE]),
        left_calf_length=distance(p[Landmark.LEFT_KNEE], p[Landmark.LEFT_ANKLE]),
        right_calf_length=distance(p[Landmark.RIGHT_KNEE], p[Landmark.RIGHT_ANKLE]),
        torso_length=torso_length,
        shoulder_symmetry=level_symmetry(p[Landmark.LEFT_SHOULDER], p[Landmark.RIGHT_SHOULDER]),
        hip_symmetry=level_symmetry(p[Landmark.LEFT_HIP], p[Landmark.RIGHT_HIP]),
        posture=calculate_posture(p),
        average_confidence=average_confidence,
    )
