"""Shared fixtures: real git repositories built with GitPython."""

import sqlite3
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest
from git import Actor, Repo

ALICE = Actor("Alice", "alice@example.com")
BOB = Actor("bob", "bob@example.com")


class RepoBuilder:
    """Creates commits with deterministic timestamps in a fresh repository."""

    def __init__(self, path: Path):
        self.path = path
        self.path.mkdir(parents=True, exist_ok=True)
        self.repo = Repo.init(path)
        self._clock = 1_700_000_000

    def commit(
        self,
        message: str,
        files: Optional[Dict[str, str]] = None,
        remove: Iterable[str] = (),
        author: Actor = ALICE,
        parents: Optional[List] = None,
    ):
        for name, content in (files or {}).items():
            file_path = self.path / name
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content)
            self.repo.index.add([name])
        removed = list(remove)
        if removed:
            self.repo.index.remove(removed, working_tree=True)

        self._clock += 60
        date = f"{self._clock} +0000"
        return self.repo.index.commit(
            message,
            parent_commits=parents,
            author=author,
            committer=author,
            author_date=date,
            commit_date=date,
        )

    def close(self) -> None:
        self.repo.close()


@pytest.fixture
def workspace():
    """Temporary directory holding test repositories and databases."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def make_repo(workspace):
    """Factory for RepoBuilder instances under the workspace."""
    builders: List[RepoBuilder] = []

    def factory(name: str) -> RepoBuilder:
        builder = RepoBuilder(workspace / name)
        builders.append(builder)
        return builder

    yield factory

    for builder in builders:
        builder.close()


@pytest.fixture
def simple_repo(make_repo) -> RepoBuilder:
    """Two linear commits: add a file, then edit it."""
    builder = make_repo("simple")
    builder.commit("Add readme", {"README.md": "hello\nworld\n"})
    builder.commit("Expand readme", {"README.md": "hello\nthere\nworld\n"})
    return builder


@pytest.fixture
def database(workspace) -> Path:
    return workspace / "repositories.db"


def count_rows(database: Path, table: str) -> int:
    conn = sqlite3.connect(database)
    try:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    finally:
        conn.close()


def fetch_all(database: Path, query: str, params=()) -> list:
    conn = sqlite3.connect(database)
    try:
        return conn.execute(query, params).fetchall()
    finally:
        conn.close()
