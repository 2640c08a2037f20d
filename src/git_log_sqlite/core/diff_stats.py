"""Per-commit change statistics with exact rename and copy detection."""

import logging
from typing import List, NamedTuple

import git
from git import Repo

logger = logging.getLogger(__name__)

# Only byte-identical renames/copies are collapsed; anything less similar
# stays a delete + add pair.
DIFF_TREE_OPTIONS = (
    "--root",
    "--no-commit-id",
    "-r",
    "--numstat",
    "-z",
    "-M100%",
    "-C100%",
    "--ignore-submodules",
)


class DiffStats(NamedTuple):
    insertions: int
    deletions: int
    changed_files: List[str]


def _text_path(path: str) -> str:
    # Undecodable bytes in a file name arrive as surrogate escapes, which
    # SQLite cannot bind; store them as U+FFFD instead.
    return path.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def _count(value: str) -> int:
    # numstat reports "-" for binary files
    return int(value) if value.isdigit() else 0


def parse_numstat(output: str) -> DiffStats:
    """Parse ``git diff-tree --numstat -z`` output.

    Regular entries are ``added<TAB>deleted<TAB>path<NUL>``. Renames and
    copies leave the path empty and follow it with ``source<NUL>dest<NUL>``;
    the destination is the path that gets recorded.
    """
    tokens = output.split("\0")
    insertions = 0
    deletions = 0
    changed_files: List[str] = []

    i = 0
    while i < len(tokens):
        token = tokens[i].lstrip("\n")
        i += 1
        if not token:
            continue

        parts = token.split("\t", 2)
        if len(parts) != 3:
            raise ValueError(f"Unexpected numstat entry: {token!r}")
        added, deleted, path = parts

        if not path:
            if i + 1 >= len(tokens):
                raise ValueError("Truncated rename entry in numstat output")
            path = tokens[i + 1]
            i += 2

        insertions += _count(added)
        deletions += _count(deleted)
        changed_files.append(_text_path(path))

    return DiffStats(insertions, deletions, changed_files)


def compute_diff_stats(repo: Repo, commit: git.Commit) -> DiffStats:
    """Diff a commit against its first parent, or the empty tree for a root.

    A failing diff degrades to zero insertions, zero deletions and no
    changed files so that the commit is still emitted.
    """
    try:
        output = repo.git.diff_tree(*DIFF_TREE_OPTIONS, commit.hexsha)
        return parse_numstat(output)
    except (git.exc.GitCommandError, ValueError) as e:
        logger.debug("Diff failed for %s in %s: %s", commit.hexsha, repo.working_dir, e)
        return DiffStats(0, 0, [])
