from __future__ import annotations

from typing import TYPE_CHECKING

from git_ingest.logging import logger
from git_ingest.repository import BLOB

if TYPE_CHECKING:
    from collections.abc import Iterable

    from git_ingest.repository import RepositorySnapshot


def normalize_path(path: str) -> str:
    """Return the slash-normalized form of a repository-relative path.

    Args:
        path (str): the path as reported by the repository backend

    Returns:
        str: the path with POSIX separators and no leading `./` or `/`
    """
    norm = path.replace("\\", "/")
    while norm.startswith("./"):
        norm = norm[2:]
    return norm.lstrip("/")


def under_prefix(path: str, prefix: str | None) -> bool:
    """Check whether `path` lies inside the directory `prefix` (always True without a prefix)."""
    if not prefix:
        return True
    return path.startswith(prefix.rstrip("/") + "/")


def tracked_paths(snapshot: RepositorySnapshot, path_prefix: str | None = None) -> list[str]:
    """Collect the blob paths of the committed tree, in walk order.

    Entries that are not blobs (subtrees, submodule commits) are skipped; subtrees
    are still descended into by the walk itself.

    Args:
        snapshot (RepositorySnapshot): the repository to read
        path_prefix (str | None): restrict the walk to this directory

    Returns:
        list[str]: normalized paths of tracked files
    """
    out: list[str] = []
    for entry in snapshot.walk_tree(path_prefix):
        if entry.kind != BLOB:
            continue
        path = normalize_path(entry.path)
        if under_prefix(path, path_prefix):
            out.append(path)
    return out


def sorted_unique(paths: Iterable[str]) -> list[str]:
    """Sort paths ascending and drop duplicates."""
    out: list[str] = []
    for path in sorted(paths):
        if not out or out[-1] != path:
            out.append(path)
    return out


def enumerate_candidates(
    snapshot: RepositorySnapshot,
    *,
    include_untracked: bool,
    path_prefix: str | None = None,
) -> list[str]:
    """Produce the sorted, duplicate-free candidate paths of a repository.

    Tracked paths come from the committed tree. Untracked paths are added when
    requested, and always when the repository has no commits yet. The
    filesystem is never consulted here: stale tree entries are dropped later.

    Args:
        snapshot (RepositorySnapshot): the repository to read
        include_untracked (bool): whether untracked files are candidates
        path_prefix (str | None): restrict candidates to this directory

    Returns:
        list[str]: candidate paths, sorted ascending and deduplicated
    """
    has_commits = snapshot.has_commits
    candidates: list[str] = tracked_paths(snapshot, path_prefix) if has_commits else []
    tracked_count = len(candidates)

    if include_untracked or not has_commits:
        candidates.extend(
            path
            for path in (normalize_path(p) for p in snapshot.untracked_paths())
            if under_prefix(path, path_prefix)
        )

    result = sorted_unique(candidates)
    logger.debug(
        "candidates_enumerated",
        tracked=tracked_count,
        untracked=len(candidates) - tracked_count,
        unique=len(result),
        has_commits=has_commits,
    )
    return result
