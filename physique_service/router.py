"""
PHYSIQUE-AI Physique Service Router

Endpoints for rating a physique photo. Uses MediaPipe pose estimation
and rule-based scoring; progress can be streamed over a WebSocket.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.requests import HTTPConnection

from core.config import settings
from shared.images import DecodedImage, decode_image
from shared.utils import error_response, success_response

from .models import (
    AnalysisFailedError,
    AnalysisResult,
    InitializationError,
    NoSubjectDetectedError,
    NotInitializedError,
    PhysiqueAnalysisError,
    PhysiqueAnalyzer,
    ProgressEvent,
    create_physique_analyzer,
)

logger = logging.getLogger("physique.router")

router = APIRouter()


ERROR_STATUS_CODES = {
    NoSubjectDetectedError: 422,
    NotInitializedError: 503,
    InitializationError: 503,
    AnalysisFailedError: 500,
}


def get_analyzer(connection: HTTPConnection) -> PhysiqueAnalyzer:
    """Get the app's analyzer, creating it on first use."""
    state = connection.app.state
    analyzer = getattr(state, "physique_analyzer", None)
    if analyzer is None:
        analyzer = create_physique_analyzer()
        state.physique_analyzer = analyzer
    return analyzer


def _http_error(error: PhysiqueAnalysisError) -> HTTPException:
    status_code = ERROR_STATUS_CODES.get(type(error), 500)
    return HTTPException(
        status_code=status_code,
        detail=error_response(str(error), error_code=error.error_code),
    )


def _result_payload(result: AnalysisResult, decoded: DecodedImage) -> Dict[str, Any]:
    width, height = result.image_size
    return {
        "ratings": result.ratings.to_dict(),
        "features": result.features.to_dict(),
        "poses_detected": result.poses_detected,
        "pose": result.pose.to_dict(),
        "image": {
            "width": width,
            "height": height,
            "is_placeholder": decoded.is_placeholder,
        },
        "processing_time_ms": round(result.processing_time_ms, 1),
    }


# ============= REST Endpoints =============

@router.get("/status")
async def get_status(analyzer: PhysiqueAnalyzer = Depends(get_analyzer)):
    """Analyzer lifecycle state and the latest successful ratings."""
    return success_response(analyzer.get_status())


@router.post("/initialize")
async def initialize_analyzer(analyzer: PhysiqueAnalyzer = Depends(get_analyzer)):
    """
    Load the pose model.

    Returns the progress steps reported; empty if the model was already loaded.
    """
    steps: List[ProgressEvent] = []
    try:
        await analyzer.initialize(steps.append)
    except PhysiqueAnalysisError as e:
        raise _http_error(e)

    return success_response(
        {"initialized": analyzer.is_initialized, "steps": [s.to_dict() for s in steps]},
        message="Analyzer ready",
    )


@router.post("/analyze")
async def analyze_physique(
    image: UploadFile = File(...),
    analyzer: PhysiqueAnalyzer = Depends(get_analyzer),
):
    """
    Rate the physique in an uploaded photo.

    Returns per-muscle-group scores (1-10) with rating bands, the measured
    features, and the progress steps reported during analysis.
    """
    content = await image.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=error_response(
                f"Image exceeds {settings.MAX_UPLOAD_BYTES} bytes",
                error_code="UPLOAD_TOO_LARGE",
            ),
        )

    decoded = decode_image(content)
    steps: List[ProgressEvent] = []

    try:
        await analyzer.initialize(steps.append)
        result = await analyzer.analyze_with_details(
            decoded.image,
            steps.append,
            width=decoded.width,
            height=decoded.height,
        )
    except PhysiqueAnalysisError as e:
        raise _http_error(e)

    payload = _result_payload(result, decoded)
    payload["steps"] = [s.to_dict() for s in steps]
    return success_response(payload, message="Physique analysis complete")


# ============= WebSocket Endpoints =============

@router.websocket("/ws/analyze")
async def analyze_stream(websocket: WebSocket, analyzer: PhysiqueAnalyzer = Depends(get_analyzer)):
    """
    Analyze images sent as binary messages, streaming progress.

    For each image the server sends PROGRESS messages followed by exactly
    one RESULT or ERROR message.
    """
    await websocket.accept()

    async def send_progress(event: ProgressEvent):
        await websocket.send_json({"type": "PROGRESS", **event.to_dict()})

    try:
        await websocket.send_json({
            "type": "CONNECTED",
            "message": "Physique stream connected"
        })

        while True:
            data = await websocket.receive_bytes()
            decoded = decode_image(data)

            try:
                await analyzer.initialize(send_progress)
                result = await analyzer.analyze_with_details(
                    decoded.image,
                    send_progress,
                    width=decoded.width,
                    height=decoded.height,
                )
            except PhysiqueAnalysisError as e:
                await websocket.send_json({
                    "type": "ERROR",
                    "error_code": e.error_code,
                    "message": str(e)
                })
                continue

            await websocket.send_json({"type": "RESULT", **_result_payload(result, decoded)})

    except WebSocketDisconnect:
        logger.info("Client disconnected from physique stream")
