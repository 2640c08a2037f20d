"""Repository lifecycle as three distinct states.

Each state is its own class and only exposes the operations that are valid
for it:

- ``UninitializedRepository``: a validated directory, nothing opened yet
- ``OpenedRepository``: owns the GitPython handle and the HEAD commit id
- ``AnalyzedRepository``: the extracted history, no native resources left

Transitions return a new object of the next class, so there is no way to
analyze before opening or to store before analyzing.
"""

import logging
import re
from pathlib import Path
from typing import List, Mapping, Optional, Union

import git
from git import Repo
from pydantic import BaseModel

from git_log_sqlite.core.errors import (
    InvalidPathError,
    NoHeadError,
    NotARepositoryError,
)
from git_log_sqlite.core.history import CommitHistoryExtractor
from git_log_sqlite.models.commit import CommitRecord
from git_log_sqlite.models.repository import RepositoryIdentity

logger = logging.getLogger(__name__)

# user@host:path, as used by ssh remotes such as git@github.com:owner/repo.git
SCP_URL_PATTERN = re.compile(r"^(?P<user>[^@/:]+)@(?P<host>[^:/]+):(?P<path>(?!/).+)$")


def normalize_remote_url(url: str) -> str:
    """Rewrite an scp-style ssh remote to its https equivalent."""
    url = url.strip()
    match = SCP_URL_PATTERN.match(url)
    if match is None:
        return url
    return f"https://{match.group('host')}/{match.group('path')}"


class UninitializedRepository(BaseModel):
    """A candidate directory whose identity has been derived."""

    identity: RepositoryIdentity

    model_config = {"frozen": True}

    @classmethod
    def try_new(cls, path: Union[str, Path]) -> "UninitializedRepository":
        """Validate ``path`` and derive the repository identity from it."""
        try:
            canonical = Path(path).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise InvalidPathError(path, f"cannot resolve path ({e})") from e

        if not canonical.is_dir():
            raise InvalidPathError(path, "not a directory")
        if not canonical.name:
            raise InvalidPathError(path, "path has no final component")

        return cls(identity=RepositoryIdentity(name=canonical.name, canonical_path=canonical))

    def open(self) -> "OpenedRepository":
        """Open the native repository and resolve HEAD."""
        path = self.identity.canonical_path
        try:
            repo = Repo(path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise NotARepositoryError(path, "not a git repository") from e

        try:
            if not repo.head.is_valid():
                raise NoHeadError(path, "HEAD does not point to a commit")
            head_commit_id = repo.head.commit.hexsha
        except NoHeadError:
            repo.close()
            raise
        except (ValueError, TypeError, git.exc.GitError) as e:
            repo.close()
            raise NoHeadError(path, f"cannot resolve HEAD ({e})") from e

        return OpenedRepository(identity=self.identity, repo=repo, head_commit_id=head_commit_id)


class OpenedRepository(BaseModel):
    """An open repository. Use as a context manager to release the handle."""

    identity: RepositoryIdentity
    repo: Repo
    head_commit_id: str

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    def __enter__(self) -> "OpenedRepository":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def close(self) -> None:
        """Release the GitPython handle and any git subprocesses it holds."""
        self.repo.close()

    def remote_url(self) -> Optional[str]:
        """URL of the ``origin`` remote, or None when there is no such remote."""
        if "origin" not in [r.name for r in self.repo.remotes]:
            return None
        try:
            urls = list(self.repo.remote("origin").urls)
        except git.exc.GitCommandError:
            return None
        return normalize_remote_url(urls[0]) if urls else None

    def analyze(self, author_map: Optional[Mapping[str, str]] = None) -> "AnalyzedRepository":
        """Extract the commit history reachable from HEAD."""
        extractor = CommitHistoryExtractor(self.repo, author_map)
        commits = extractor.extract(self.head_commit_id)
        logger.debug("Extracted %d commits from %s", len(commits), self.identity.name)
        return AnalyzedRepository(
            identity=self.identity,
            remote_url=self.remote_url(),
            commits=commits,
        )


class AnalyzedRepository(BaseModel):
    """Extracted history of one repository, ready to be persisted."""

    identity: RepositoryIdentity
    remote_url: Optional[str] = None
    commits: List[CommitRecord] = []

    model_config = {"frozen": True}

    @property
    def commit_count(self) -> int:
        return len(self.commits)
