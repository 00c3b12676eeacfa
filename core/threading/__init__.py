"""
PHYSIQUE-AI Threading Module
"""

from .worker_pool import (
    WorkerPool,
    Task,
    TaskStatus,
    ml_worker_pool,
    run_ml_inference
)

__all__ = [
    'WorkerPool',
    'Task',
    'TaskStatus',
    'ml_worker_pool',
    'run_ml_inference'
]
