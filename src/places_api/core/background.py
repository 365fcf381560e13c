"""Background task runner abstraction.

Provides a protocol for submitting and tracking detached background tasks,
with an in-process asyncio implementation.  Submitted tasks are not tied to
the request that spawned them: cancelling the request leaves the task
running, and task failures are reported through the log instead of being
raised to the submitter.
"""

import asyncio
import enum
import uuid
from collections import OrderedDict
from collections.abc import Coroutine
from typing import Any, Protocol

from loguru import logger


class JobStatus(enum.StrEnum):
    """Status of a background job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class BackgroundTaskRunner(Protocol):
    """Protocol for background task execution."""

    def submit_task(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> str:
        """Submit an async task for background execution.

        Args:
            coro: The coroutine to execute.
            name: Optional label used in log messages.

        Returns:
            A job ID string for tracking.
        """
        ...

    def get_status(self, job_id: str) -> JobStatus:
        """Get the current status of a background job.

        Args:
            job_id: The job ID returned by submit_task.

        Returns:
            The current job status.
        """
        ...


class InProcessTaskRunner:
    """In-process background task runner using asyncio.

    Tasks run in the same event loop as the caller via asyncio.create_task().
    A strong reference is held until each task finishes so the loop cannot
    garbage-collect it mid-flight.  Statuses of finished jobs are kept for the
    most recent ``max_finished_jobs`` only.
    """

    def __init__(self, max_finished_jobs: int = 1000) -> None:
        self._max_finished_jobs = max_finished_jobs
        self._jobs: dict[str, JobStatus] = {}
        self._finished: OrderedDict[str, JobStatus] = OrderedDict()
        self._tasks: dict[str, asyncio.Task[Any]] = {}

    def submit_task(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> str:
        """Submit an async task for background execution.

        Args:
            coro: The coroutine to execute.
            name: Optional label used in log messages.

        Returns:
            A job ID string for tracking.
        """
        job_id = str(uuid.uuid4())
        label = name or job_id
        self._jobs[job_id] = JobStatus.PENDING

        async def _run() -> None:
            self._jobs[job_id] = JobStatus.RUNNING
            try:
                await coro
                self._finish(job_id, JobStatus.COMPLETED)
            except Exception as e:
                self._finish(job_id, JobStatus.FAILED)
                logger.warning(f"Background task {label} failed: {e}")

        task = asyncio.create_task(_run(), name=label)
        self._tasks[job_id] = task
        task.add_done_callback(lambda _t: self._release(job_id))
        return job_id

    def _release(self, job_id: str) -> None:
        self._tasks.pop(job_id, None)
        if job_id in self._jobs:
            # cancelled before reaching a terminal state
            self._finish(job_id, JobStatus.FAILED)

    def _finish(self, job_id: str, status: JobStatus) -> None:
        self._jobs.pop(job_id, None)
        self._finished[job_id] = status
        while len(self._finished) > self._max_finished_jobs:
            self._finished.popitem(last=False)

    def get_status(self, job_id: str) -> JobStatus:
        """Get the current status of a background job.

        Args:
            job_id: The job ID returned by submit_task.

        Returns:
            The current job status.

        Raises:
            KeyError: If the job ID is unknown or its status has been evicted.
        """
        if job_id in self._jobs:
            return self._jobs[job_id]
        return self._finished[job_id]

    @property
    def pending_count(self) -> int:
        """Number of submitted tasks that have not finished yet."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every task submitted so far to finish."""
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


# Singleton instance for the application
task_runner = InProcessTaskRunner()
