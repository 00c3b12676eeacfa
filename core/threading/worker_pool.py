"""
PHYSIQUE-AI Worker Thread Pool

ThreadPoolExecutor for blocking pose-model inference
without blocking the async event loop.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor, Future
from typing import Callable, Any, Optional
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
import threading
import uuid

from core.config import settings

logger = logging.getLogger(__name__)


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Task:
    """Represents an inference task."""
    task_id: str
    func: Callable
    args: tuple = ()
    kwargs: dict = None
    status: TaskStatus = TaskStatus.PENDING
    error: Optional[str] = None
    created_at: datetime = None
    completed_at: datetime = None

    def __post_init__(self):
        if self.kwargs is None:
            self.kwargs = {}
        if self.created_at is None:
            self.created_at = datetime.now(timezone.utc)


class WorkerPool:
    """
    Thread pool for blocking model calls.

    Features:
    - Fixed-size thread pool (size 1 serializes inference)
    - Async-compatible execution
    - Task tracking and stats
    """

    def __init__(
        self,
        max_workers: int = None,
        name: str = "worker_pool"
    ):
        self.max_workers = max_workers or settings.ML_INFERENCE_WORKERS
        self.name = name

        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix=f"{name}_"
        )

        # Only unfinished tasks are kept; finished ones are counted
        self._tasks: dict[str, Task] = {}
        self._lock = threading.Lock()

        self._completed_count = 0
        self._failed_count = 0

        logger.info(
            f"🧵 WorkerPool '{name}' initialized (workers: {self.max_workers})"
        )

    def submit(
        self,
        func: Callable,
        *args,
        task_id: str = None,
        **kwargs
    ) -> Future:
        """
        Submit a task to the thread pool.

        Returns:
            concurrent.futures.Future resolving to the task's return value
        """
        task_id = task_id or f"task_{uuid.uuid4().hex[:8]}"

        task = Task(
            task_id=task_id,
            func=func,
            args=args,
            kwargs=kwargs
        )

        with self._lock:
            self._tasks[task_id] = task

        logger.debug(f"Task {task_id} submitted")
        return self._executor.submit(self._run_task, task)

    async def submit_async(
        self,
        func: Callable,
        *args,
        task_id: str = None,
        **kwargs
    ) -> Any:
        """
        Submit and await a task result (async-friendly).

        Exceptions raised by ``func`` propagate to the awaiting caller.
        """
        future = self.submit(func, *args, task_id=task_id, **kwargs)
        return await asyncio.wrap_future(future)

    def _run_task(self, task: Task) -> Any:
        """Execute a task in the thread pool."""
        task.status = TaskStatus.RUNNING

        try:
            result = task.func(*task.args, **task.kwargs)
            task.status = TaskStatus.COMPLETED

            with self._lock:
                self._completed_count += 1

            logger.debug(f"Task {task.task_id} completed")
            return result

        except Exception as e:
            task.status = TaskStatus.FAILED
            task.error = str(e)

            with self._lock:
                self._failed_count += 1

            logger.error(f"Task {task.task_id} failed: {e}")
            raise

        finally:
            task.completed_at = datetime.now(timezone.utc)
            with self._lock:
                self._tasks.pop(task.task_id, None)

    # ========================================
    # Lifecycle
    # ========================================

    def shutdown(self, wait: bool = True):
        """Shutdown the thread pool."""
        logger.info(f"Shutting down WorkerPool '{self.name}'...")
        self._executor.shutdown(wait=wait)
        logger.info(f"WorkerPool '{self.name}' shutdown complete")

    def get_stats(self) -> dict:
        """Get pool statistics."""
        with self._lock:
            tasks = list(self._tasks.values())
        return {
            "name": self.name,
            "max_workers": self.max_workers,
            "pending_tasks": len([t for t in tasks if t.status == TaskStatus.PENDING]),
            "running_tasks": len([t for t in tasks if t.status == TaskStatus.RUNNING]),
            "completed_tasks": self._completed_count,
            "failed_tasks": self._failed_count,
        }


# ============================================
# Global Worker Pool
# ============================================

# ML inference pool (pose estimation)
ml_worker_pool = WorkerPool(name="ml_inference")


async def run_ml_inference(
    model_fn: Callable,
    *args: Any,
    **kwargs: Any
) -> Any:
    """
    Run ML inference using the ML worker pool.

    Usage:
        results = await run_ml_inference(
            pose_detector.process,
            rgb_image
        )
    """
    return await ml_worker_pool.submit_async(model_fn, *args, **kwargs)
