"""
Persistence Layer

Provides storage for reports and job tracking.
"""

from .storage import StorageBackend, FileStorage, MemoryStorage, create_storage_backend
from .jobs import JobTracker, Job, JobStatus, InvalidJobTransition

__all__ = [
    "StorageBackend",
    "FileStorage",
    "MemoryStorage",
    "create_storage_backend",
    "JobTracker",
    "Job",
    "JobStatus",
    "InvalidJobTransition",
]
