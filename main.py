"""
PHYSIQUE-AI Backend API
Photo-based physique rating

FastAPI application entry point with a worker thread
for non-blocking pose-model inference.
"""

import logging
import sys
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

# ============================================
# Configure Root Logger First
# ============================================
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[logging.StreamHandler(sys.stdout)]
)

# Service routers
from physique_service.router import router as physique_router
from physique_service.models import InitializationError, create_physique_analyzer

# Core utilities
from core.config import settings
from core.threading import ml_worker_pool
from shared.utils import setup_logger

# Setup logging
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
logger = setup_logger("physique.main", level=log_level)
request_logger = setup_logger("physique.requests", level=log_level)


# ============================================
# Request Logging Middleware
# ============================================

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests and responses with timing."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        client_ip = request.client.host if request.client else "unknown"
        query_string = f"?{request.url.query}" if request.url.query else ""

        request_logger.info(f"➡️  {request.method} {request.url.path}{query_string}")
        request_logger.debug(f"    Client: {client_ip}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000

            if response.status_code < 300:
                status_emoji = "✅"
            elif response.status_code < 400:
                status_emoji = "↪️"
            elif response.status_code < 500:
                status_emoji = "⚠️"
            else:
                status_emoji = "❌"

            request_logger.info(
                f"{status_emoji} {request.method} {request.url.path} → {response.status_code} ({process_time:.1f}ms)"
            )

            return response
        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            request_logger.error(
                f"💥 {request.method} {request.url.path} → ERROR: {type(e).__name__}: {str(e)} ({process_time:.1f}ms)",
                exc_info=True
            )
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown."""
    # ===== STARTUP =====
    logger.info("🚀 PHYSIQUE-AI API starting up...")

    analyzer = create_physique_analyzer()
    app.state.physique_analyzer = analyzer

    if settings.INIT_ON_STARTUP:
        try:
            await analyzer.initialize()
            logger.info("🧠 Pose model loaded")
        except InitializationError as e:
            # Requests will retry initialization
            logger.warning(f"⚠️ Pose model not loaded at startup: {e}")

    logger.info("✅ PHYSIQUE-AI API ready!")

    yield  # Application runs here

    # ===== SHUTDOWN =====
    logger.info("👋 PHYSIQUE-AI API shutting down...")

    if hasattr(analyzer.source, 'close'):
        analyzer.source.close()
    ml_worker_pool.shutdown(wait=True)

    logger.info("✅ Shutdown complete")


app = FastAPI(
    title="PHYSIQUE-AI API",
    description="Photo-based physique rating from pose keypoints",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    analyzer = getattr(app.state, "physique_analyzer", None)
    return {
        "status": "healthy",
        "service": "physique-api",
        "model_loaded": bool(analyzer and analyzer.is_initialized),
    }


@app.get("/stats")
async def get_stats():
    """Get service statistics."""
    return {
        "ml_pool": ml_worker_pool.get_stats(),
    }


# Include service routers
app.include_router(physique_router, prefix="/api/physique", tags=["Physique Service"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
