"""
PHYSIQUE-AI Physique Service - Errors
"""


class PhysiqueAnalysisError(Exception):
    """Base class for analyzer failures."""
    error_code = "PHYSIQUE_ERROR"


class InitializationError(PhysiqueAnalysisError):
    """Runtime or model failed to load. Calling initialize() again may succeed."""
    error_code = "INIT_FAILED"


class NotInitializedError(PhysiqueAnalysisError):
    """analyze_physique() was called before a successful initialize()."""
    error_code = "NOT_INITIALIZED"

    def __init__(self, message: str = "Analyzer not initialized"):
        super().__init__(message)


class NoSubjectDetectedError(PhysiqueAnalysisError):
    """The detector ran but found nobody in the image."""
    error_code = "NO_SUBJECT"

    def __init__(self, message: str = "No person detected in the image"):
        super().__init__(message)


class AnalysisFailedError(PhysiqueAnalysisError):
    """
    Any other analysis failure.

    The message is deliberately generic; the underlying exception is logged
    and kept as ``__cause__``.
    """
    error_code = "ANALYSIS_FAILED"

    def __init__(self, message: str = "Failed to analyze physique"):
        super().__init__(message)
