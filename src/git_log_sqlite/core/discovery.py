"""Candidate directory discovery below a scan root."""

import os
from pathlib import Path
from typing import Iterable, List, NamedTuple


class DiscoveryResult(NamedTuple):
    directories: List[Path]
    ignored: List[str]  # names of ignored directories that were found


def discover_directories(
    root: Path,
    *,
    recursive: bool = False,
    max_depth: int = 1,
    ignored_repositories: Iterable[str] = (),
) -> DiscoveryResult:
    """List directories to try as repositories.

    Without ``recursive`` the root itself is the only candidate. Otherwise
    every directory up to ``max_depth`` levels below the root is returned,
    except ``.git``, symlinked directories and directories named in
    ``ignored_repositories``, none of which are descended into.
    """
    if not recursive:
        return DiscoveryResult([root], [])
    if max_depth < 1:
        return DiscoveryResult([], [])

    ignore = set(ignored_repositories)
    directories: List[Path] = []
    ignored: List[str] = []

    def onerror(err: OSError) -> None:
        _ = err

    root_depth = len(root.parts)
    for dirpath, dirnames, _filenames in os.walk(root, onerror=onerror):
        depth = len(Path(dirpath).parts) - root_depth
        kept = []
        for name in sorted(dirnames):
            if name == ".git":
                continue
            if name in ignore:
                ignored.append(name)
                continue
            if (Path(dirpath) / name).is_symlink():
                continue
            kept.append(name)
            directories.append(Path(dirpath) / name)
        dirnames[:] = kept if depth + 1 < max_depth else []

    return DiscoveryResult(sorted(directories), sorted(ignored))
