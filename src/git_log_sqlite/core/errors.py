"""Exceptions raised while ingesting a repository."""

from pathlib import Path
from typing import Union

from git_log_sqlite.models.outcome import SkipReason


class IngestionError(Exception):
    """Base class for failures that abandon a single repository."""

    reason = SkipReason.UNEXPECTED

    def __init__(self, path: Union[str, Path], message: str):
        super().__init__(f"{path}: {message}")
        self.path = Path(path)
        self.message = message


class InvalidPathError(IngestionError):
    """Path is not a directory, does not exist, or has no final component."""

    reason = SkipReason.INVALID_PATH


class NotARepositoryError(IngestionError):
    """Directory exists but is not a git repository."""

    reason = SkipReason.NOT_A_REPOSITORY


class NoHeadError(IngestionError):
    """Repository has no commit behind HEAD (e.g. freshly initialized)."""

    reason = SkipReason.NO_HEAD


class TraversalError(IngestionError):
    """The commit graph walk itself failed."""

    reason = SkipReason.TRAVERSAL_FAILURE


class PersistenceError(IngestionError):
    """Schema, connection or transaction failure in the database."""

    reason = SkipReason.PERSISTENCE_FAILURE


class ConfigError(Exception):
    """Configuration file could not be read or validated."""
