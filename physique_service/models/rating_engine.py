"""
PHYSIQUE-AI Physique Service - Rating Engine

Maps a FeatureSet onto 1-10 ratings for six muscle groups and an overall
score. Each group runs one measurement through a normalize / power-curve /
rescale step, then confidence and symmetry multipliers are applied.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from shared.utils import clamp

from .feature_extractor import FeatureSet

MIN_RATING = 1.0
MAX_RATING = 10.0

MIN_CONFIDENCE_MULTIPLIER = 0.7
SYMMETRY_BASE = 0.8
SYMMETRY_WEIGHT = 0.2

MUSCLE_GROUPS = ("biceps", "shoulders", "chest", "back", "legs", "core")


class RatingBand(Enum):
    """Verbal label for a 1-10 rating."""
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    BELOW_AVERAGE = "below_average"
    NEEDS_WORK = "needs_work"

    @classmethod
    def from_score(cls, score: float) -> "RatingBand":
        if score >= 9:
            return cls.EXCELLENT
        elif score >= 7:
            return cls.GOOD
        elif score >= 5:
            return cls.AVERAGE
        elif score >= 3:
            return cls.BELOW_AVERAGE
        return cls.NEEDS_WORK


@dataclass(frozen=True)
class ScoringCurve:
    """Expected value range and curve exponent for one measurement."""
    min_expected: float
    max_expected: float
    steepness: float = 1.0


@dataclass(frozen=True)
class RatingSet:
    """Final physique ratings, each in [1, 10]."""
    biceps: float
    shoulders: float
    chest: float
    back: float
    legs: float
    core: float
    overall: float

    def to_dict(self) -> Dict[str, dict]:
        """Convert to JSON-serializable dict."""
        return {
            name: {
                "score": round(score, 1),
                "band": RatingBand.from_score(score).value,
            }
            for name, score in (
                ("biceps", self.biceps),
                ("shoulders", self.shoulders),
                ("chest", self.chest),
                ("back", self.back),
                ("legs", self.legs),
                ("core", self.core),
                ("overall", self.overall),
            )
        }


def score_feature(
    value: float,
    min_expected: float,
    max_expected: float,
    curve_steepness: float = 1.0
) -> float:
    """
    Map a raw measurement onto the 1-10 scale.

    The value is normalized into [0, 1] against the expected range, raised
    to ``curve_steepness`` (> 1 pulls mid-range values down, 1 is linear)
    and rescaled to 1 + 9 * curved. NaN and -inf score the minimum, +inf
    the maximum.

    Raises:
        ValueError: if the range is empty or the steepness isn't positive
    """
    if not min_expected < max_expected:
        raise ValueError(f"Invalid expected range [{min_expected}, {max_expected}]")
    if curve_steepness <= 0:
        raise ValueError(f"Curve steepness must be positive, got {curve_steepness}")

    if math.isnan(value) or value == -math.inf:
        return MIN_RATING
    if value == math.inf:
        return MAX_RATING

    normalized = clamp((value - min_expected) / (max_expected - min_expected), 0.0, 1.0)
    curved = normalized ** curve_steepness
    return MIN_RATING + curved * (MAX_RATING - MIN_RATING)


class RatingEngine:
    """
    Rule-based physique scoring.

    Curve constants are hand-tuned heuristics, not fitted to data. Pass
    ``curves`` to override any of them.
    """

    SCORING_CURVES: Dict[str, ScoringCurve] = {
        "biceps": ScoringCurve(0.10, 0.30, 1.5),     # mean upper-arm segment
        "shoulders": ScoringCurve(0.15, 0.40, 1.2),  # shoulder width
        "chest": ScoringCurve(1.1, 1.6, 1.3),        # shoulder / hip width
        "posture": ScoringCurve(0.5, 1.0, 2.0),
        "legs": ScoringCurve(0.20, 0.50, 1.4),       # mean thigh/calf segment
        "core": ScoringCurve(1.1, 2.0, 1.3),         # shoulder / hip width
    }

    def __init__(self, curves: Optional[Mapping[str, ScoringCurve]] = None):
        self.curves = dict(self.SCORING_CURVES)
        if curves:
            self.curves.update(curves)

    def _score(self, key: str, value: float) -> float:
        curve = self.curves[key]
        return score_feature(value, curve.min_expected, curve.max_expected, curve.steepness)

    def raw_scores(self, features: FeatureSet) -> Dict[str, float]:
        """Per-group scores before confidence/symmetry multipliers."""
        shoulders = self._score("shoulders", features.shoulder_width)

        if features.hip_width > 0 and features.shoulder_width > 0:
            core = self._score("core", features.shoulder_width / features.hip_width)
        else:
            core = MIN_RATING

        return {
            "biceps": self._score(
                "biceps",
                (features.left_arm_thickness + features.right_arm_thickness) / 2,
            ),
            "shoulders": shoulders,
            "chest": self._score("chest", features.chest_to_hip_ratio),
            # Back blends posture with shoulder development
            "back": (self._score("posture", features.posture) + shoulders) / 2,
            "legs": self._score(
                "legs",
                (
                    features.left_thigh_length
                    + features.right_thigh_length
                    + features.left_calf_length
                    + features.right_calf_length
                ) / 4,
            ),
            "core": core,
        }

    def compute_ratings(self, features: FeatureSet) -> RatingSet:
        """
        Score a feature set.

        Only the paired-limb groups (biceps, shoulders) get the symmetry
        adjustment; every group gets the confidence multiplier.
        """
        raw = self.raw_scores(features)

        confidence_multiplier = max(MIN_CONFIDENCE_MULTIPLIER, features.average_confidence)
        symmetry_bonus = (features.shoulder_symmetry + features.hip_symmetry) / 2
        symmetry_multiplier = SYMMETRY_BASE + symmetry_bonus * SYMMETRY_WEIGHT

        scores = {}
        for group in MUSCLE_GROUPS:
            score = raw[group] * confidence_multiplier
            if group in ("biceps", "shoulders"):
                score *= symmetry_multiplier
            scores[group] = clamp(score, MIN_RATING, MAX_RATING)

        overall = clamp(sum(scores.values()) / len(scores), MIN_RATING, MAX_RATING)

        return RatingSet(overall=overall, **scores)


def compute_ratings(features: FeatureSet) -> RatingSet:
    """Score a feature set with the default curves."""
    return RatingEngine().compute_ratings(features)
