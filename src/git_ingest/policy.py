from __future__ import annotations

from enum import StrEnum, auto
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from git_ingest.config import VCS_METADATA_DIR
from git_ingest.patterns import first_match, matches_any

if TYPE_CHECKING:
    from git_ingest.config import SelectionConfig
    from git_ingest.repository import RepositorySnapshot


class Decision(StrEnum):
    """Outcome of the inclusion policy, naming the rule that decided it."""

    KEEP = auto()
    KEEP_INCLUDED = auto()
    DROP_IGNORED = auto()
    DROP_VCS_METADATA = auto()
    DROP_EXCLUDED = auto()
    DROP_NOT_INCLUDED = auto()

    @property
    def keep(self) -> bool:
        return self in {Decision.KEEP, Decision.KEEP_INCLUDED}


def in_vcs_metadata(path: str) -> bool:
    """Check whether any component of `path` is the version-control metadata directory."""
    return VCS_METADATA_DIR in PurePosixPath(path).parts


def decide(path: str, snapshot: RepositorySnapshot, config: SelectionConfig) -> Decision:
    """Run the inclusion rules for one candidate path, stopping at the first that applies.

    1. ignored by the repository and untracked files not requested: drop
    2. inside the `.git` directory: drop
    3. matches an exclude pattern: drop
    4. include patterns configured: keep iff one matches
    5. otherwise keep

    Args:
        path (str): the candidate path, relative to the repository root
        snapshot (RepositorySnapshot): the repository, for ignore status
        config (SelectionConfig): the run configuration

    Raises:
        StatusQueryError: if the ignore status cannot be determined

    Returns:
        Decision: the outcome and the rule that produced it
    """
    if snapshot.is_ignored(path) and not config.include_untracked:
        return Decision.DROP_IGNORED
    if in_vcs_metadata(path):
        return Decision.DROP_VCS_METADATA
    if first_match(config.effective_excludes, path) is not None:
        return Decision.DROP_EXCLUDED
    if config.include_patterns:
        if matches_any(config.include_patterns, path):
            return Decision.KEEP_INCLUDED
        return Decision.DROP_NOT_INCLUDED
    return Decision.KEEP


def should_include(path: str, snapshot: RepositorySnapshot, config: SelectionConfig) -> bool:
    """Decide whether a candidate path is kept.

    Raises:
        StatusQueryError: if the ignore status cannot be determined
    """
    return decide(path, snapshot, config).keep
