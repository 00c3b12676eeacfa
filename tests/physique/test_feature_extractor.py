"""Tests for geometric feature extraction."""

import math
from dataclasses import asdict

import pytest

from physique_service.models import Keypoint, Landmark, Pose, extract_features
from physique_service.models.feature_extractor import normalize_keypoints


def test_standing_figure_features(make_pose):
    f = extract_features(make_pose(), 1000, 1000)

    assert f.shoulder_width == pytest.approx(0.4)
    assert f.hip_width == pytest.approx(0.2)
    assert f.chest_to_hip_ratio == pytest.approx(2.0)
    assert f.left_arm_thickness == pytest.approx(math.hypot(0.05, 0.2))
    assert f.right_arm_thickness == pytest.approx(math.hypot(0.05, 0.2))
    assert f.left_thigh_length == pytest.approx(math.hypot(0.1, 0.2))
    assert f.right_calf_length == pytest.approx(math.hypot(0.05, 0.2))
    assert f.torso_length == pytest.approx(0.2)
    assert f.shoulder_symmetry == pytest.approx(1.0)
    assert f.hip_symmetry == pytest.approx(1.0)
    assert f.posture == pytest.approx(1.0)
    assert f.average_confidence == pytest.approx(1.0)


def test_coordinates_are_normalized_per_axis(make_pose):
    square = extract_features(make_pose(size=(1000, 1000)), 1000, 1000)
    wide = extract_features(make_pose(size=(2000, 500)), 2000, 500)

    assert asdict(wide) == pytest.approx(asdict(square))


def test_average_confidence_uses_every_keypoint(make_pose):
    face = {"left_eye": 0.5, "right_eye": 0.5, "left_ear": 0.5, "right_ear": 0.5}
    f = extract_features(make_pose(scores=face), 1000, 1000)

    assert f.average_confidence == pytest.approx((13 * 1.0 + 4 * 0.5) / 17)


def test_posture_penalizes_leaning_and_tilt(make_pose):
    points = {
        "nose": (0.3, 0.15),
        "left_shoulder": (0.3, 0.38), "right_shoulder": (0.7, 0.42),
        "left_hip": (0.4, 0.7), "right_hip": (0.6, 0.7),
    }
    f = extract_features(make_pose(points=points), 1000, 1000)

    expected = ((1 - 0.04) + 1.0 + (1 - 0.2)) / 3
    assert f.posture == pytest.approx(expected)
    assert f.shoulder_symmetry == pytest.approx(0.96)


def test_missing_ankles_zero_calves_only(make_pose):
    f = extract_features(make_pose(drop=("left_ankle", "right_ankle")), 1000, 1000)

    assert f.left_calf_length == 0.0
    assert f.right_calf_length == 0.0
    assert f.left_thigh_length == pytest.approx(math.hypot(0.1, 0.2))
    assert f.shoulder_width == pytest.approx(0.4)


def test_missing_one_shoulder_reads_as_zero(make_pose):
    f = extract_features(make_pose(drop=("right_shoulder",)), 1000, 1000)

    assert f.shoulder_width == 0.0
    assert f.right_arm_thickness == 0.0
    # Missing side counts as y = 0
    assert f.shoulder_symmetry == pytest.approx(1 - 0.4)
    assert f.posture == 0.5
    # Shoulder midpoint uses x = 0, y = 0 for the missing point
    assert f.torso_length == pytest.approx(math.hypot(0.15 - 0.5, 0.2 - 0.6))


def test_missing_both_hips(make_pose):
    f = extract_features(make_pose(drop=("left_hip", "right_hip")), 1000, 1000)

    assert f.hip_width == 0.0
    assert f.chest_to_hip_ratio == 0.0
    # Both sides missing reads as perfectly level
    assert f.hip_symmetry == 1.0
    assert f.posture == 0.5
    assert f.torso_length == pytest.approx(math.hypot(0.5, 0.4))
    assert f.left_thigh_length == 0.0


def test_missing_nose_gives_neutral_posture(make_pose):
    f = extract_features(make_pose(drop=("nose",)), 1000, 1000)
    assert f.posture == 0.5


def test_empty_pose_never_raises():
    f = extract_features(Pose(keypoints=[]), 640, 480)

    assert f.shoulder_width == 0.0
    assert f.chest_to_hip_ratio == 0.0
    assert f.torso_length == 0.0
    assert f.shoulder_symmetry == 1.0
    assert f.posture == 0.5
    assert f.average_confidence == 0.0


def test_symmetry_and_posture_stay_in_unit_interval(make_pose):
    points = {
        "nose": (0.0, 0.0),
        "left_shoulder": (0.0, 0.0), "right_shoulder": (1.0, 1.0),
        "left_hip": (1.0, 0.0), "right_hip": (1.0, 1.0),
    }
    f = extract_features(make_pose(points=points), 1000, 1000)

    for value in (f.shoulder_symmetry, f.hip_symmetry, f.posture):
        assert 0.0 <= value <= 1.0


def test_off_frame_landmarks_are_clamped_to_the_edge(make_pose):
    points = {
        "nose": (-0.5, -0.2),
        "left_shoulder": (0.3, 0.4), "right_shoulder": (0.7, 0.4),
        "left_hip": (0.4, 1.3), "right_hip": (0.6, 0.1),
    }
    pose = make_pose(points=points)

    normalized = normalize_keypoints(pose, 1000, 1000)
    assert normalized[Landmark.LEFT_HIP].y == 1.0
    assert normalized[Landmark.NOSE].x == 0.0
    assert normalized[Landmark.NOSE].y == 0.0

    f = extract_features(pose, 1000, 1000)
    assert f.hip_symmetry == pytest.approx(0.1)
    for value in (f.shoulder_symmetry, f.hip_symmetry, f.posture):
        assert 0.0 <= value <= 1.0


def test_unknown_and_duplicate_names():
    pose = Pose(keypoints=[
        Keypoint("left_shoulder", 100, 100, 0.9),
        Keypoint("left_shoulder", 900, 900, 0.1),
        Keypoint("tail", 500, 500, 0.4),
    ])
    points = normalize_keypoints(pose, 1000, 1000)

    assert points[Landmark.LEFT_SHOULDER].x == pytest.approx(0.1)
    assert points[Landmark.LEFT_SHOULDER].confidence == 0.9
    assert points[Landmark.RIGHT_SHOULDER] is None
    assert "tail" not in {lm.value for lm in points}


def test_feature_set_to_dict_rounds(make_pose):
    data = extract_features(make_pose(), 1000, 1000).to_dict()

    assert data["shoulder_width"] == 0.4
    assert data["left_arm_thickness"] == round(math.hypot(0.05, 0.2), 4)
