"""
PHYSIQUE-AI Physique Service Models

Pose keypoints to physique ratings: feature extraction, rule-based
scoring and the analysis lifecycle around a MediaPipe pose detector.
"""

from .errors import (
    PhysiqueAnalysisError,
    InitializationError,
    NotInitializedError,
    NoSubjectDetectedError,
    AnalysisFailedError,
)

from .keypoints import (
    Landmark,
    Keypoint,
    Pose,
    PoseSelection,
    KeypointSource,
    select_pose,
)

from .feature_extractor import (
    NormalizedPoint,
    FeatureSet,
    extract_features,
)

from .rating_engine import (
    RatingBand,
    RatingSet,
    RatingEngine,
    ScoringCurve,
    score_feature,
    compute_ratings,
)

from .mediapipe_source import MediaPipeKeypointSource

from .physique_analyzer import (
    PhysiqueAnalyzer,
    AnalysisState,
    AnalysisSession,
    AnalysisResult,
    ProgressEvent,
    create_physique_analyzer,
)

__all__ = [
    # Errors
    "PhysiqueAnalysisError",
    "InitializationError",
    "NotInitializedError",
    "NoSubjectDetectedError",
    "AnalysisFailedError",
    # Keypoints
    "Landmark",
    "Keypoint",
    "Pose",
    "PoseSelection",
    "KeypointSource",
    "select_pose",
    # Features
    "NormalizedPoint",
    "FeatureSet",
    "extract_features",
    # Ratings
    "RatingBand",
    "RatingSet",
    "RatingEngine",
    "ScoringCurve",
    "score_feature",
    "compute_ratings",
    # Analyzer
    "MediaPipeKeypointSource",
    "PhysiqueAnalyzer",
    "AnalysisState",
    "AnalysisSession",
    "AnalysisResult",
    "ProgressEvent",
    "create_physique_analyzer",
]
