"""Commit graph traversal producing ordered commit records."""

import logging
from typing import Iterator, List, Mapping, Optional, Tuple

import git
from git import Repo

from git_log_sqlite.core.diff_stats import compute_diff_stats
from git_log_sqlite.core.errors import TraversalError
from git_log_sqlite.models.commit import CommitRecord

logger = logging.getLogger(__name__)

NO_AUTHOR_NAME = "(no author name)"
NO_AUTHOR_EMAIL = "(no author email)"


def resolve_author(
    raw_name: Optional[str],
    raw_email: Optional[str],
    author_map: Optional[Mapping[str, str]] = None,
) -> Tuple[str, str]:
    """Return the (name, email) pair to store for a commit author.

    Missing values are replaced by sentinels. A mapped display name wins
    over the raw name; the email is never rewritten.
    """
    name = raw_name or NO_AUTHOR_NAME
    email = raw_email or NO_AUTHOR_EMAIL
    if author_map and raw_email and raw_email in author_map:
        name = author_map[raw_email]
    return name, email


class CommitHistoryExtractor:
    """Walks a repository from a starting commit and emits non-merge commits."""

    def __init__(self, repo: Repo, author_map: Optional[Mapping[str, str]] = None):
        self.repo = repo
        self.author_map = author_map

    def _walk(self, start: str) -> Iterator[git.Commit]:
        # Newest first, children always before their parents.
        return self.repo.iter_commits(start, date_order=True)

    def _has_tree(self, commit: git.Commit) -> bool:
        try:
            # Commit.tree is lazy; ask the object database for it
            self.repo.odb.info(commit.tree.binsha)
        except (ValueError, git.exc.BadName, git.exc.BadObject) as e:
            logger.debug("Skipping %s, tree unavailable: %s", commit.hexsha, e)
            return False
        return True

    def to_record(self, commit: git.Commit) -> CommitRecord:
        """Build the record for a single non-merge commit."""
        parent_id = commit.parents[0].hexsha if commit.parents else None
        author = commit.author
        name, email = resolve_author(author.name, author.email, self.author_map)
        stats = compute_diff_stats(self.repo, commit)

        return CommitRecord(
            commit_id=commit.hexsha,
            parent_id=parent_id,
            author_name=name,
            author_email=email,
            commit_time=int(commit.committed_date),
            summary=commit.summary if isinstance(commit.summary, str) else "",
            insertions=stats.insertions,
            deletions=stats.deletions,
            changed_files=stats.changed_files,
        )

    def extract(self, start: str) -> List[CommitRecord]:
        """Return records for every reachable non-merge commit, in walk order."""
        records: List[CommitRecord] = []
        try:
            for commit in self._walk(start):
                if len(commit.parents) >= 2:
                    continue
                if not self._has_tree(commit):
                    continue
                records.append(self.to_record(commit))
        except (git.exc.GitCommandError, ValueError) as e:
            raise TraversalError(self.repo.working_dir or self.repo.git_dir, str(e)) from e
        return records
