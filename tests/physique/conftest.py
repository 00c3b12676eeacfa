"""
Shared fixtures for physique service tests.

Poses are described in normalized coordinates and scaled to pixels for a
1000x1000 image unless a test says otherwise.
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

from physique_service.models import FeatureSet, Keypoint, Pose

IMAGE_SIZE = (1000, 1000)

# Front-facing wide-stance figure; shoulders and hips level
STANDING_FIGURE: Dict[str, Tuple[float, float]] = {
    "nose": (0.5, 0.15),
    "left_eye": (0.48, 0.13),
    "right_eye": (0.52, 0.13),
    "left_ear": (0.46, 0.14),
    "right_ear": (0.54, 0.14),
    "left_shoulder": (0.3, 0.4),
    "right_shoulder": (0.7, 0.4),
    "left_elbow": (0.25, 0.6),
    "right_elbow": (0.75, 0.6),
    "left_wrist": (0.22, 0.75),
    "right_wrist": (0.78, 0.75),
    "left_hip": (0.4, 0.6),
    "right_hip": (0.6, 0.6),
    "left_knee": (0.3, 0.8),
    "right_knee": (0.7, 0.8),
    "left_ankle": (0.25, 1.0),
    "right_ankle": (0.75, 1.0),
}


def build_pose(
    points: Optional[Dict[str, Tuple[float, float]]] = None,
    size: Tuple[int, int] = IMAGE_SIZE,
    score: float = 1.0,
    scores: Optional[Dict[str, float]] = None,
    drop: Iterable[str] = (),
) -> Pose:
    points = dict(STANDING_FIGURE if points is None else points)
    scores = scores or {}
    width, height = size
    dropped = set(drop)
    return Pose(keypoints=[
        Keypoint(name=name, x=x * width, y=y * height, score=scores.get(name, score))
        for name, (x, y) in points.items()
        if name not in dropped
    ])


class FakeKeypointSource:
    """KeypointSource double that records calls."""

    def __init__(
        self,
        poses: Optional[List[Pose]] = None,
        error: Optional[Exception] = None,
        ready_error: Optional[Exception] = None,
        load_error: Optional[Exception] = None,
    ):
        self.poses = poses if poses is not None else [build_pose()]
        self.error = error
        self.ready_error = ready_error
        self.load_error = load_error

        self.ready_calls = 0
        self.load_calls = 0
        self.estimate_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def ready(self) -> None:
        self.ready_calls += 1
        if self.ready_error:
            raise self.ready_error

    async def load(self) -> None:
        self.load_calls += 1
        await asyncio.sleep(0.01)
        if self.load_error:
            raise self.load_error

    async def estimate_poses(self, image) -> List[Pose]:
        self.estimate_calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            if self.error:
                raise self.error
            return list(self.poses)
        finally:
            self.in_flight -= 1


PERFECT_FEATURES = dict(
    shoulder_width=0.4,
    left_arm_thickness=0.3,
    right_arm_thickness=0.3,
    chest_to_hip_ratio=1.6,
    hip_width=0.2,
    left_thigh_length=0.5,
    right_thigh_length=0.5,
    left_calf_length=0.5,
    right_calf_length=0.5,
    torso_length=0.3,
    shoulder_symmetry=1.0,
    hip_symmetry=1.0,
    posture=1.0,
    average_confidence=1.0,
)


@pytest.fixture
def make_pose():
    return build_pose


@pytest.fixture
def make_features():
    def _make(**overrides) -> FeatureSet:
        values = dict(PERFECT_FEATURES)
        values.update(overrides)
        return FeatureSet(**values)
    return _make


@pytest.fixture
def fake_source_cls():
    return FakeKeypointSource


@pytest.fixture
def image():
    import numpy as np
    return np.zeros((IMAGE_SIZE[1], IMAGE_SIZE[0], 3), dtype=np.uint8)
