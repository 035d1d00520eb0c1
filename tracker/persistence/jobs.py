"""
Job Tracking

Track analysis jobs from submission to completion.

Status only moves forward (pending -> processing -> completed | failed)
and progress never decreases. Every mutation of a job is serialised by
that job's lock.
"""

import asyncio
import logging
import uuid
import weakref
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List

from .storage import StorageBackend

logger = logging.getLogger(__name__)

JOB_KEY_PREFIX = "jobs/"


class JobStatus(Enum):
    """Job status states."""
    PENDING = "pending"           # Created, pipeline not started
    PROCESSING = "processing"     # Pipeline running
    COMPLETED = "completed"       # Report stored
    FAILED = "failed"             # Failed with error

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.PENDING, JobStatus.PROCESSING, JobStatus.FAILED},
    JobStatus.PROCESSING: {JobStatus.PROCESSING, JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


class InvalidJobTransition(Exception):
    """Raised when a status change would move a job backwards."""

    def __init__(self, job_id: str, current: JobStatus, requested: JobStatus):
        super().__init__(f"Job {job_id}: cannot move from {current.value} to {requested.value}")
        self.job_id = job_id
        self.current = current
        self.requested = requested


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Job:
    """Analysis job data model."""
    job_id: str
    input_value: str
    input_type: str
    status: JobStatus
    created_at: datetime
    updated_at: datetime

    raters: List[str] = field(default_factory=list)

    # Progress tracking (0-100)
    progress: int = 0

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    # Results
    report_key: Optional[str] = None

    # Errors
    error_message: Optional[str] = None

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        data = asdict(self)
        data["status"] = self.status.value
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        if self.started_at:
            data["started_at"] = self.started_at.isoformat()
        if self.completed_at:
            data["completed_at"] = self.completed_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "Job":
        """Create from dictionary."""
        data = dict(data)
        data["status"] = JobStatus(data["status"])
        data["created_at"] = datetime.fromisoformat(data["created_at"])
        data["updated_at"] = datetime.fromisoformat(data["updated_at"])
        if data.get("started_at"):
            data["started_at"] = datetime.fromisoformat(data["started_at"])
        if data.get("completed_at"):
            data["completed_at"] = datetime.fromisoformat(data["completed_at"])
        return cls(**data)

    def update_status(self, status: JobStatus, progress: Optional[int] = None):
        """
        Move the job forward.

        Raises:
            InvalidJobTransition: status would move backwards or leave a terminal state
        """
        if status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidJobTransition(self.job_id, self.status, status)

        self.status = status
        self.updated_at = _now()

        if progress is not None:
            self.advance(progress)

        if status == JobStatus.PROCESSING and not self.started_at:
            self.started_at = self.updated_at

        if status.is_terminal:
            self.completed_at = self.updated_at
            if self.started_at:
                self.duration_seconds = (self.completed_at - self.started_at).total_seconds()

    def advance(self, progress: int):
        """Raise progress; lower values are ignored."""
        progress = max(0, min(100, progress))
        if progress > self.progress:
            self.progress = progress
            self.updated_at = _now()


class JobTracker:
    """
    Tracks analysis jobs.

    Provides job lifecycle management and status queries on top of an
    injected storage backend.
    """

    def __init__(self, storage: StorageBackend):
        """
        Initialize job tracker.

        Args:
            storage: Backend holding job records
        """
        self.storage = storage

        # In-memory cache of active jobs
        self._jobs: Dict[str, Job] = {}
        # Locks live only while some caller holds them
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _get_job_key(self, job_id: str) -> str:
        return f"{JOB_KEY_PREFIX}{job_id}"

    def _lock(self, job_id: str) -> asyncio.Lock:
        lock = self._locks.get(job_id)
        if lock is None:
            lock = self._locks[job_id] = asyncio.Lock()
        return lock

    async def _save_job(self, job: Job):
        """Persist job to storage."""
        await self.storage.save_json(self._get_job_key(job.job_id), job.to_dict())

    async def create_job(
        self,
        input_value: str,
        input_type: str,
        raters: Optional[List[str]] = None,
    ) -> Job:
        """
        Create a new pending analysis job.

        Returns:
            The created Job object
        """
        job_id = str(uuid.uuid4())
        now = _now()

        job = Job(
            job_id=job_id,
            input_value=input_value,
            input_type=input_type,
            status=JobStatus.PENDING,
            created_at=now,
            updated_at=now,
            raters=list(raters or []),
        )

        async with self._lock(job_id):
            self._jobs[job_id] = job
            await self._save_job(job)

        logger.info(f"Created job {job_id} for {input_type}: {input_value}")
        return job

    async def get_job(self, job_id: str) -> Optional[Job]:
        """Get job by ID."""
        # Check cache first
        if job_id in self._jobs:
            return self._jobs[job_id]

        data = await self.storage.load_json(self._get_job_key(job_id))
        if data is None:
            return None

        try:
            return Job.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to load job {job_id}: {e}")
            return None

    async def update_job(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        progress: Optional[int] = None,
    ) -> Optional[Job]:
        """
        Update a job's status and/or progress.

        Args:
            job_id: Job ID
            status: New status (must be a forward transition)
            progress: Progress percentage (0-100); never decreases

        Returns:
            Updated Job or None if not found
        """
        async with self._lock(job_id):
            job = await self.get_job(job_id)
            if not job:
                return None

            if status:
                job.update_status(status, progress)
            elif progress is not None:
                job.advance(progress)

            if job.status.is_terminal:
                self._jobs.pop(job_id, None)
            else:
                self._jobs[job_id] = job
            await self._save_job(job)

        return job

    async def complete_job(self, job_id: str, report_key: str) -> Optional[Job]:
        """Mark job as completed with its stored report."""
        async with self._lock(job_id):
            job = await self.get_job(job_id)
            if not job:
                return None

            job.report_key = report_key
            job.update_status(JobStatus.COMPLETED, 100)

            # Remove from active cache
            self._jobs.pop(job_id, None)
            await self._save_job(job)

        logger.info(f"Completed job {job_id}")
        return job

    async def fail_job(self, job_id: str, error_message: str) -> Optional[Job]:
        """Mark job as failed; progress is forced to 100."""
        async with self._lock(job_id):
            job = await self.get_job(job_id)
            if not job:
                return None

            if job.status.is_terminal:
                logger.warning(f"Job {job_id} already {job.status.value}, not failing it")
                return job

            job.error_message = error_message
            job.update_status(JobStatus.FAILED, 100)

            # Remove from active cache
            self._jobs.pop(job_id, None)
            await self._save_job(job)

        logger.error(f"Failed job {job_id}: {error_message}")
        return job

    async def list_jobs(
        self,
        status: Optional[JobStatus] = None,
        limit: int = 100,
    ) -> List[Job]:
        """
        List jobs with optional status filter, newest first.

        Args:
            status: Filter by status
            limit: Maximum number of jobs to return
        """
        jobs: Dict[str, Job] = {}
        for key in await self.storage.list_keys(JOB_KEY_PREFIX):
            job = await self.get_job(key[len(JOB_KEY_PREFIX):])
            if job:
                jobs[job.job_id] = job

        result = list(jobs.values())
        if status:
            result = [j for j in result if j.status == status]

        result.sort(key=lambda j: j.created_at, reverse=True)
        return result[:limit]

    def get_active_jobs_count(self) -> int:
        """Get count of active (non-terminal) jobs."""
        return len(self._jobs)
