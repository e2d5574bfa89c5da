from __future__ import annotations

import io
import sys
from typing import TYPE_CHECKING, TextIO

from git_ingest.config import FilterPreset
from git_ingest.exceptions import OutputSinkError

if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

    from git_ingest.ingestion import FilterStats

GENERATOR_NAME = "git-ingest"

PRESET_DESCRIPTIONS: dict[FilterPreset, str] = {
    FilterPreset.RAW: "raw (no filtering)",
    FilterPreset.STANDARD: "standard (smart filtering)",
    FilterPreset.CODE_ONLY: "code-only",
    FilterPreset.MINIMAL: "minimal filtering",
}


class OutputSink:
    """Writable destination for the rendered stream: a created file or stdout.

    Files are opened with `newline=""` so that file content is written byte for
    byte; stdout is switched to the same `surrogateescape` error policy, flushed
    but never closed.
    """

    def __init__(self, destination: Path | None = None) -> None:
        self.destination = destination
        self._stream: TextIO | None = None

    def open(self) -> TextIO:
        """Open the destination.

        Raises:
            OutputSinkError: if the output file cannot be created

        Returns:
            TextIO: the writable stream
        """
        if self._stream is None:
            if self.destination is None:
                self._stream = sys.stdout
                if isinstance(self._stream, io.TextIOWrapper):
                    # paths decoded with surrogate escapes must reach stdout byte for byte
                    self._stream.reconfigure(errors="surrogateescape")
            else:
                try:
                    self.destination.parent.mkdir(parents=True, exist_ok=True)
                    self._stream = self.destination.open(
                        "w",
                        encoding="utf-8",
                        newline="",
                        errors="surrogateescape",
                    )
                except OSError as e:
                    raise OutputSinkError(path=self.destination, reason=e.strerror or str(e)) from e
        return self._stream

    def close(self) -> None:
        if self._stream is None:
            return
        if self._stream is sys.stdout:
            self._stream.flush()
        else:
            self._stream.close()
        self._stream = None

    def __enter__(self) -> TextIO:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def open_sink(destination: Path | None = None) -> OutputSink:
    """Return the sink for `destination` (stdout when None); use it as a context manager."""
    return OutputSink(destination)


def build_header(source: str, preset: FilterPreset = FilterPreset.RAW) -> str:
    """Build the comment header written before the first block.

    Args:
        source (str): the repository source as given by the user
        preset (FilterPreset): the active filter preset, named when it is not `raw`

    Returns:
        str: the header lines followed by one blank line
    """
    lines = [f"# Repository: {source}", f"# Generated by {GENERATOR_NAME}"]
    if preset is not FilterPreset.RAW:
        lines.append(f"# Filter preset: {PRESET_DESCRIPTIONS[preset]}")
        lines.append("# Use --raw or --preset raw to include all files")
    return "\n".join(lines) + "\n\n"


def write_header(sink: TextIO, source: str, preset: FilterPreset = FilterPreset.RAW) -> None:
    """Write the comment header to the sink."""
    sink.write(build_header(source, preset))


def format_filter_stats(stats: FilterStats) -> str:
    """Render filtering statistics as a small aligned table.

    Args:
        stats (FilterStats): the statistics to show

    Returns:
        str: one line per figure
    """
    mib = 1_048_576
    rows = [
        ("Total files found:", str(stats.total_files)),
        ("Files to include:", f"{stats.included_files} ({stats.inclusion_rate * 100:.1f}%)"),
        ("Files excluded:", f"{stats.excluded_files} ({(1 - stats.inclusion_rate) * 100:.1f}%)"),
        ("Total size:", f"{stats.total_size / mib:.2f} MB"),
        ("Included size:", f"{stats.included_size / mib:.2f} MB"),
        ("Size reduction:", f"{stats.excluded_size / mib:.2f} MB ({stats.size_reduction * 100:.1f}%)"),
    ]
    if stats.missing_files:
        rows.insert(1, ("Missing on disk:", str(stats.missing_files)))
    rows.extend((f"  dropped ({rule}):", str(count)) for rule, count in sorted(stats.dropped_by_rule.items()))
    width = max(len(label) for label, _ in rows)
    return "\n".join(f"{label.ljust(width)}  {value}" for label, value in rows) + "\n"


def format_filtering_summary(stats: FilterStats) -> str:
    """Summarize the effect of a filter preset in two lines, for stderr."""
    mib = 1_048_576
    return (
        f"Filtering enabled: {stats.total_files} files -> {stats.included_files} files "
        f"({(1 - stats.inclusion_rate) * 100:.1f}% reduction)\n"
        f"Size reduction: {stats.total_size / mib:.2f} MB -> {stats.included_size / mib:.2f} MB "
        f"({stats.size_reduction * 100:.1f}% smaller)\n"
    )
