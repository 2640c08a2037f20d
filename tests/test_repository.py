"""Tests for the repository lifecycle states."""

from pathlib import Path

import pytest
from git import Repo

from git_log_sqlite.core.errors import InvalidPathError, NoHeadError, NotARepositoryError
from git_log_sqlite.core.repository import (
    AnalyzedRepository,
    OpenedRepository,
    UninitializedRepository,
    normalize_remote_url,
)
from git_log_sqlite.models.outcome import SkipReason


def test_try_new_derives_identity(simple_repo):
    """Test that the identity comes from the canonical path."""
    uninitialized = UninitializedRepository.try_new(f"{simple_repo.path}/../simple")

    assert uninitialized.identity.name == "simple"
    assert uninitialized.identity.canonical_path == simple_repo.path.resolve()


def test_try_new_rejects_file(workspace):
    file_path = workspace / "plain.txt"
    file_path.write_text("not a directory")

    with pytest.raises(InvalidPathError) as exc_info:
        UninitializedRepository.try_new(file_path)
    assert exc_info.value.reason == SkipReason.INVALID_PATH


def test_try_new_rejects_missing_path(workspace):
    with pytest.raises(InvalidPathError):
        UninitializedRepository.try_new(workspace / "does-not-exist")


def test_try_new_rejects_filesystem_root():
    """Test that a path without a final component is refused."""
    with pytest.raises(InvalidPathError):
        UninitializedRepository.try_new(Path("/"))


def test_open_rejects_plain_directory(workspace):
    plain = workspace / "plain"
    plain.mkdir()

    with pytest.raises(NotARepositoryError):
        UninitializedRepository.try_new(plain).open()


def test_open_rejects_empty_repository(workspace):
    """Test that a repository without commits has no usable HEAD."""
    empty = workspace / "empty"
    Repo.init(empty).close()

    with pytest.raises(NoHeadError) as exc_info:
        UninitializedRepository.try_new(empty).open()
    assert exc_info.value.reason == SkipReason.NO_HEAD


def test_open_resolves_head(simple_repo):
    with UninitializedRepository.try_new(simple_repo.path).open() as opened:
        assert isinstance(opened, OpenedRepository)
        assert opened.head_commit_id == simple_repo.repo.head.commit.hexsha


def test_context_manager_closes_handle(simple_repo, monkeypatch):
    """Test that leaving the with block releases the native handle."""
    closed = []
    opened = UninitializedRepository.try_new(simple_repo.path).open()
    monkeypatch.setattr(type(opened.repo), "close", lambda self: closed.append(self))

    with pytest.raises(RuntimeError):
        with opened:
            raise RuntimeError("boom")

    assert opened.repo in closed


def test_analyze_without_remote(simple_repo):
    with UninitializedRepository.try_new(simple_repo.path).open() as opened:
        analyzed = opened.analyze()

    assert isinstance(analyzed, AnalyzedRepository)
    assert analyzed.remote_url is None
    assert analyzed.commit_count == 2
    assert analyzed.identity.name == "simple"


def test_analyze_normalizes_origin_url(simple_repo):
    simple_repo.repo.create_remote("origin", "git@github.com:octo/simple.git")

    with UninitializedRepository.try_new(simple_repo.path).open() as opened:
        analyzed = opened.analyze()

    assert analyzed.remote_url == "https://github.com/octo/simple.git"


def test_analyze_applies_author_map(simple_repo):
    with UninitializedRepository.try_new(simple_repo.path).open() as opened:
        analyzed = opened.analyze({"alice@example.com": "Alice Liddell"})

    assert {c.author_name for c in analyzed.commits} == {"Alice Liddell"}
    assert {c.author_email for c in analyzed.commits} == {"alice@example.com"}


@pytest.mark.parametrize(
    "url, expected",
    [
        ("git@github.com:owner/repo.git", "https://github.com/owner/repo.git"),
        ("deploy@git.example.org:team/tool", "https://git.example.org/team/tool"),
        ("https://github.com/owner/repo.git", "https://github.com/owner/repo.git"),
        ("ssh://git@github.com/owner/repo.git", "ssh://git@github.com/owner/repo.git"),
        ("/srv/git/repo.git", "/srv/git/repo.git"),
    ],
)
def test_normalize_remote_url(url, expected):
    assert normalize_remote_url(url) == expected
