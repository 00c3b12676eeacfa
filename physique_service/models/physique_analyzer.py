"""
PHYSIQUE-AI Physique Service - Physique Analyzer

Owns the analysis lifecycle: brings the keypoint source up once, then for
each image runs pose detection, feature extraction and scoring while
reporting progress to the caller.
"""

import asyncio
import inspect
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Union

import numpy as np

from core.config import settings

from .errors import (
    AnalysisFailedError,
    InitializationError,
    NoSubjectDetectedError,
    NotInitializedError,
)
from .feature_extractor import FeatureSet, extract_features
from .keypoints import KeypointSource, Pose, PoseSelection, select_pose
from .mediapipe_source import MediaPipeKeypointSource
from .rating_engine import RatingEngine, RatingSet

logger = logging.getLogger("physique.analyzer")


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS AND DATA CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class AnalysisState(Enum):
    """Analyzer lifecycle states."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class ProgressEvent:
    """One progress update."""
    step: str
    progress: int  # 0-100

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, "progress": self.progress}


ProgressCallback = Callable[[ProgressEvent], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class AnalysisResult:
    """Ratings plus the intermediate data they were computed from."""
    ratings: RatingSet
    features: FeatureSet
    pose: Pose
    poses_detected: int
    image_size: Tuple[int, int]
    processing_time_ms: float


@dataclass
class AnalysisSession:
    """State of the current initialization or analysis request."""
    session_id: str
    state: AnalysisState = AnalysisState.UNINITIALIZED
    failure_reason: Optional[str] = None
    started_at: float = field(default_factory=time.time)
    completed_at: Optional[float] = None
    ratings: Optional[RatingSet] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "failure_reason": self.failure_reason,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "ratings": self.ratings.to_dict() if self.ratings else None,
        }


def _new_session_id() -> str:
    return str(uuid.uuid4())[:8]


# ═══════════════════════════════════════════════════════════════════════════════
# PHYSIQUE ANALYZER CLASS
# ═══════════════════════════════════════════════════════════════════════════════

class PhysiqueAnalyzer:
    """
    Pose-to-rating pipeline around a keypoint source.

    Lifecycle:
        uninitialized -> initializing -> ready -> analyzing -> completed | failed

    A completed or failed request doesn't block the next one; once
    initialized, later requests go straight to analyzing. Inference is
    serialized, so overlapping analyze calls queue up rather than run
    concurrently against the same detector.
    """

    def __init__(
        self,
        source: KeypointSource,
        engine: Optional[RatingEngine] = None,
        pose_selection: Union[PoseSelection, str, None] = None,
    ):
        self.source = source
        self.engine = engine or RatingEngine()
        self.pose_selection = PoseSelection(pose_selection or settings.POSE_SELECTION)

        self.is_initialized = False
        self.session = AnalysisSession(session_id=_new_session_id())
        self.latest_ratings: Optional[RatingSet] = None

        self._init_lock = asyncio.Lock()
        self._inference_lock = asyncio.Lock()

    @property
    def state(self) -> AnalysisState:
        return self.session.state

    # ═══════════════════════════════════════════════════════════════════════════
    # INITIALIZATION
    # ═══════════════════════════════════════════════════════════════════════════

    async def initialize(self, on_progress: Optional[ProgressCallback] = None) -> None:
        """
        Start the runtime and load the pose model.

        A no-op (no progress events) once initialized. Concurrent callers
        wait for the first one instead of loading the model twice.

        Raises:
            InitializationError: runtime or model failed; safe to retry
        """
        if self.is_initialized:
            return

        async with self._init_lock:
            if self.is_initialized:
                return

            self.session.state = AnalysisState.INITIALIZING
            self.session.failure_reason = None

            try:
                await self._report(on_progress, "Initializing pose runtime...", 10)
                logger.info("Starting pose runtime initialization...")
                await self.source.ready()

                await self._report(on_progress, "Loading pose detection model...", 30)
                logger.info("Creating pose detector...")
                await self.source.load()

                await self._report(on_progress, "Models loaded successfully!", 100)
            except asyncio.CancelledError:
                logger.warning("Initialization cancelled")
                self.session.state = AnalysisState.UNINITIALIZED
                raise
            except Exception as e:
                logger.error(f"❌ Initialization failed: {e}", exc_info=True)
                self.is_initialized = False
                self.session.state = AnalysisState.FAILED
                self.session.failure_reason = str(e)
                self.session.completed_at = time.time()
                raise InitializationError(f"Failed to initialize AI models: {e}") from e

            self.is_initialized = True
            self.session.state = AnalysisState.READY
            logger.info("✅ Physique analyzer ready")

    # ═══════════════════════════════════════════════════════════════════════════
    # ANALYSIS
    # ═══════════════════════════════════════════════════════════════════════════

    async def analyze_physique(
        self,
        image: np.ndarray,
        on_progress: Optional[ProgressCallback] = None,
        *,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> RatingSet:
        """
        Rate the physique of the person in ``image``.

        Args:
            image: Decoded image, shape (H, W, 3)
            on_progress: Called with a ProgressEvent before each step; the
                last event is always 100%
            width, height: Pixel size; read from ``image.shape`` if omitted

        Raises:
            NotInitializedError: initialize() hasn't succeeded
            NoSubjectDetectedError: no pose found in the image
            AnalysisFailedError: anything else went wrong
        """
        result = await self.analyze_with_details(
            image, on_progress, width=width, height=height
        )
        return result.ratings

    async def analyze_with_details(
        self,
        image: np.ndarray,
        on_progress: Optional[ProgressCallback] = None,
        *,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> AnalysisResult:
        """Same as analyze_physique() but also returns features and the pose used."""
        if not self.is_initialized:
            logger.error("Analyzer not initialized")
            raise NotInitializedError()

        session = AnalysisSession(session_id=_new_session_id(), state=AnalysisState.ANALYZING)
        self.session = session
        start = time.perf_counter()

        try:
            width, height = self._image_size(image, width, height)

            await self._report(on_progress, "Detecting pose keypoints...", 20)
            async with self._inference_lock:
                poses = await self.source.estimate_poses(image)
            logger.debug(f"Poses detected: {len(poses)}")

            if not poses:
                raise NoSubjectDetectedError()

            pose = select_pose(poses, self.pose_selection)

            await self._report(on_progress, "Extracting measurements...", 70)
            features = extract_features(pose, width, height)

            await self._report(on_progress, "Computing scores...", 90)
            ratings = self.engine.compute_ratings(features)

        except NoSubjectDetectedError as e:
            logger.warning(f"⚠️ Session {session.session_id}: {e}")
            self._fail(session, e)
            raise
        except Exception as e:
            logger.error(f"❌ Session {session.session_id} analysis failed: {e}", exc_info=True)
            self._fail(session, e)
            raise AnalysisFailedError() from e

        self._complete(session, ratings)
        await self._report(on_progress, "Analysis complete!", 100)

        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            f"✅ Session {session.session_id} rated: overall {ratings.overall:.1f} "
            f"({len(poses)} pose(s), {elapsed:.1f}ms)"
        )

        return AnalysisResult(
            ratings=ratings,
            features=features,
            pose=pose,
            poses_detected=len(poses),
            image_size=(width, height),
            processing_time_ms=elapsed,
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════════════════════

    @staticmethod
    def _image_size(
        image: np.ndarray,
        width: Optional[int],
        height: Optional[int],
    ) -> Tuple[int, int]:
        if width is None:
            width = image.shape[1]
        if height is None:
            height = image.shape[0]
        if width <= 0 or height <= 0:
            raise ValueError(f"Image must have positive size, got {width}x{height}")
        return int(width), int(height)

    @staticmethod
    async def _report(on_progress: Optional[ProgressCallback], step: str, progress: int) -> None:
        logger.debug(f"[{progress:3d}%] {step}")
        if on_progress is None:
            return
        result = on_progress(ProgressEvent(step=step, progress=progress))
        if inspect.isawaitable(result):
            await result

    def _fail(self, session: AnalysisSession, error: Exception) -> None:
        session.state = AnalysisState.FAILED
        session.failure_reason = str(error)
        session.completed_at = time.time()

    def _complete(self, session: AnalysisSession, ratings: RatingSet) -> None:
        session.state = AnalysisState.COMPLETED
        session.ratings = ratings
        session.completed_at = time.time()
        # A newer request supersedes this one's result
        if session is self.session:
            self.latest_ratings = ratings

    def get_status(self) -> Dict[str, Any]:
        """Current lifecycle state, for status endpoints."""
        return {
            "state": self.state.value,
            "initialized": self.is_initialized,
            "pose_selection": self.pose_selection.value,
            "session": self.session.to_dict(),
            "latest_ratings": self.latest_ratings.to_dict() if self.latest_ratings else None,
        }


def create_physique_analyzer(**kwargs) -> PhysiqueAnalyzer:
    """Build an analyzer backed by MediaPipe, configured from settings."""
    return PhysiqueAnalyzer(MediaPipeKeypointSource(), **kwargs)
