"""Commit record model extracted from a repository's history."""

from typing import List, Optional

from pydantic import BaseModel


class CommitRecord(BaseModel):
    """A single non-merge commit, ready to be stored as a ``logs`` row."""

    commit_id: str
    parent_id: Optional[str] = None  # None only for root commits
    author_name: str
    author_email: str
    commit_time: int  # unix epoch seconds
    summary: str
    insertions: int = 0
    deletions: int = 0
    changed_files: List[str] = []

    model_config = {"frozen": True}

    @property
    def is_root(self) -> bool:
        """Check if this commit has no parent."""
        return self.parent_id is None
