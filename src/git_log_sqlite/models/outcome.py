"""Per-repository ingestion outcomes and the batch summary."""

from enum import Enum
from pathlib import Path
from typing import List, Union

from pydantic import BaseModel

from .repository import RepositoryIdentity


class SkipReason(str, Enum):
    """Why a candidate directory was not stored."""

    INVALID_PATH = "invalid_path"
    NOT_A_REPOSITORY = "not_a_repository"
    NO_HEAD = "no_head"
    TRAVERSAL_FAILURE = "traversal_failure"
    PERSISTENCE_FAILURE = "persistence_failure"
    UNEXPECTED = "unexpected"


class Stored(BaseModel):
    """A repository whose history was committed to the database."""

    identity: RepositoryIdentity
    commit_count: int

    model_config = {"frozen": True}

    @property
    def path(self) -> Path:
        return self.identity.canonical_path


class Skipped(BaseModel):
    """A candidate directory that was abandoned."""

    path: Path
    reason: SkipReason
    detail: str = ""

    model_config = {"frozen": True}


IngestionOutcome = Union[Stored, Skipped]


class BatchSummary(BaseModel):
    """Aggregated result of one ingestion run."""

    stored: List[Stored] = []
    skipped: List[Skipped] = []
    elapsed_seconds: float = 0.0

    @property
    def processed_count(self) -> int:
        """Number of candidate directories that were handled, stored or not."""
        return len(self.stored) + len(self.skipped)

    @property
    def stored_count(self) -> int:
        return len(self.stored)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @classmethod
    def from_outcomes(
        cls, outcomes: List[IngestionOutcome], elapsed_seconds: float
    ) -> "BatchSummary":
        """Split outcomes into stored and skipped lists, sorted by path."""
        stored = sorted(
            (o for o in outcomes if isinstance(o, Stored)), key=lambda o: str(o.path)
        )
        skipped = sorted(
            (o for o in outcomes if isinstance(o, Skipped)), key=lambda o: str(o.path)
        )
        return cls(stored=stored, skipped=skipped, elapsed_seconds=elapsed_seconds)
