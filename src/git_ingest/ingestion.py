from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, computed_field

from git_ingest.enumeration import enumerate_candidates, sorted_unique
from git_ingest.exceptions import FileRenderError
from git_ingest.logging import logger
from git_ingest.policy import decide, should_include
from git_ingest.rendering import render_file

if TYPE_CHECKING:
    from pathlib import Path
    from typing import TextIO

    from git_ingest.config import SelectionConfig
    from git_ingest.repository import RepositorySnapshot


class IngestReport(BaseModel):
    """Summary of one ingestion run.

    Attributes:
        candidates: number of enumerated candidate paths.
        selected: paths kept by the inclusion policy, in output order.
        written: paths whose block was written to the sink.
        too_large: kept paths skipped because of the size ceiling.
        missing: kept paths absent from the working tree (stale tree entries).
    """

    model_config = ConfigDict(frozen=True)

    candidates: int = Field(..., ge=0, description="Enumerated candidate paths")
    selected: tuple[str, ...] = Field(default=(), description="Paths kept by the policy")
    written: tuple[str, ...] = Field(default=(), description="Paths rendered to the sink")
    too_large: tuple[str, ...] = Field(default=(), description="Paths above the size ceiling")
    missing: tuple[str, ...] = Field(default=(), description="Paths no longer on disk")

    @computed_field
    @property
    def is_empty(self) -> bool:
        """Whether no block was written."""
        return not self.written


def select_paths(snapshot: RepositorySnapshot, config: SelectionConfig) -> tuple[int, list[str]]:
    """Enumerate the candidates of a repository and keep those the policy accepts.

    Args:
        snapshot (RepositorySnapshot): the repository to read
        config (SelectionConfig): the run configuration

    Raises:
        StatusQueryError: if the ignore status of a candidate cannot be determined

    Returns:
        tuple[int, list[str]]: the candidate count and the kept paths, sorted and unique
    """
    candidates = enumerate_candidates(
        snapshot,
        include_untracked=config.include_untracked,
        path_prefix=config.path_prefix,
    )
    kept = [path for path in candidates if should_include(path, snapshot, config)]
    return len(candidates), sorted_unique(kept)


def on_disk(full_path: Path) -> bool:
    return full_path.is_file()


def ingest(snapshot: RepositorySnapshot, config: SelectionConfig, sink: TextIO) -> IngestReport:
    """Render every selected file of the repository to `sink`.

    The pipeline runs once: enumerate, filter, sort, render. Any error aborts
    the run; oversized and vanished files are skipped silently and binary files
    are rendered with a placeholder.

    Args:
        snapshot (RepositorySnapshot): the repository to read
        config (SelectionConfig): the run configuration
        sink (TextIO): the output stream

    Raises:
        StatusQueryError: if an ignore status cannot be determined
        FileRenderError: if a selected file exists but cannot be read

    Returns:
        IngestReport: what was selected and written
    """
    candidate_count, selected = select_paths(snapshot, config)
    workdir = snapshot.workdir

    written: list[str] = []
    too_large: list[str] = []
    missing: list[str] = []
    for rel in selected:
        full_path = workdir / rel
        if not on_disk(full_path):
            logger.debug("stale_path_skipped", path=rel)
            missing.append(rel)
            continue
        if render_file(full_path, rel, sink, config.max_file_size):
            written.append(rel)
        else:
            too_large.append(rel)

    # paths may carry surrogate escapes, which pydantic string validation rejects
    report = IngestReport.model_construct(
        candidates=candidate_count,
        selected=tuple(selected),
        written=tuple(written),
        too_large=tuple(too_large),
        missing=tuple(missing),
    )
    if report.is_empty:
        logger.warning("no_files_ingested", candidates=candidate_count, selected=len(selected))
    else:
        logger.info(
            "ingest_complete",
            candidates=candidate_count,
            selected=len(selected),
            written=len(written),
            too_large=len(too_large),
            missing=len(missing),
        )
    return report


class FilterStats(BaseModel):
    """Counts of files and bytes kept or dropped by the inclusion policy.

    `total_files` counts every candidate, including tree entries missing from the
    working tree (`missing_files`); sizes cover files present on disk only.
    """

    total_files: int = 0
    missing_files: int = 0
    included_files: int = 0
    excluded_files: int = 0
    total_size: int = 0
    included_size: int = 0
    excluded_size: int = 0
    dropped_by_rule: dict[str, int] = Field(default_factory=dict)

    @computed_field
    @property
    def inclusion_rate(self) -> float:
        """Share of files kept, between 0 and 1."""
        if self.total_files == 0:
            return 0.0
        return self.included_files / self.total_files

    @computed_field
    @property
    def size_reduction(self) -> float:
        """Share of bytes dropped, between 0 and 1."""
        if self.total_size == 0:
            return 0.0
        return self.excluded_size / self.total_size


def collect_filter_stats(snapshot: RepositorySnapshot, config: SelectionConfig) -> FilterStats:
    """Measure how the inclusion policy filters the candidates of a repository.

    Args:
        snapshot (RepositorySnapshot): the repository to read
        config (SelectionConfig): the run configuration

    Raises:
        StatusQueryError: if an ignore status cannot be determined
        FileRenderError: if a candidate cannot be stat'ed

    Returns:
        FilterStats: file and byte counts
    """
    stats = FilterStats()
    candidates = enumerate_candidates(
        snapshot,
        include_untracked=config.include_untracked,
        path_prefix=config.path_prefix,
    )
    stats.total_files = len(candidates)
    for rel in candidates:
        full_path = snapshot.workdir / rel
        if not on_disk(full_path):
            stats.missing_files += 1
            continue
        try:
            size = full_path.stat().st_size
        except OSError as e:
            raise FileRenderError(path=full_path, reason=e.strerror or str(e)) from e
        decision = decide(rel, snapshot, config)
        stats.total_size += size
        if decision.keep:
            stats.included_files += 1
            stats.included_size += size
        else:
            stats.excluded_files += 1
            stats.excluded_size += size
            stats.dropped_by_rule[decision.value] = stats.dropped_by_rule.get(decision.value, 0) + 1
    return stats
