"""Data models for git-log-sqlite."""

from .commit import CommitRecord
from .outcome import BatchSummary, IngestionOutcome, Skipped, SkipReason, Stored
from .repository import RepositoryIdentity

__all__ = [
    "BatchSummary",
    "CommitRecord",
    "IngestionOutcome",
    "RepositoryIdentity",
    "Skipped",
    "SkipReason",
    "Stored",
]
