from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

from git_ingest.config import FilterPreset
from git_ingest.ingestion import FilterStats
from git_ingest.exceptions import OutputSinkError
from git_ingest.output import build_header, format_filter_stats, format_filtering_summary, open_sink, write_header


@pytest.mark.unit
def test_header_names_source_and_generator() -> None:
    assert build_header("owner/repo") == "# Repository: owner/repo\n# Generated by git-ingest\n\n"


@pytest.mark.unit
def test_header_names_active_preset() -> None:
    sink = io.StringIO()

    write_header(sink, ".", FilterPreset.CODE_ONLY)

    assert sink.getvalue().splitlines()[2] == "# Filter preset: code-only"


@pytest.mark.unit
def test_open_sink_creates_file_and_parents(tmp_path: Path) -> None:
    target = tmp_path / "out" / "nested" / "repo.txt"

    with open_sink(target) as sink:
        sink.write("a\r\nb")

    assert target.read_bytes() == b"a\r\nb"


@pytest.mark.unit
def test_open_sink_defaults_to_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    with open_sink(None) as sink:
        assert sink is sys.stdout
        sink.write("hello")

    assert not sys.stdout.closed
    assert capsys.readouterr().out == "hello"


@pytest.mark.unit
def test_format_filter_stats() -> None:
    stats = FilterStats(
        total_files=4,
        included_files=3,
        excluded_files=1,
        total_size=2_097_152,
        included_size=1_048_576,
        excluded_size=1_048_576,
        dropped_by_rule={"drop_excluded": 1},
    )

    text = format_filter_stats(stats)

    assert "Total files found:" in text
    assert "3 (75.0%)" in text
    assert "1.00 MB (50.0%)" in text
    assert "dropped (drop_excluded):" in text


@pytest.mark.unit
def test_header_for_preset_points_to_raw() -> None:
    header = build_header(".", FilterPreset.STANDARD)

    assert "# Use --raw or --preset raw to include all files\n" in header
    assert "--raw" not in build_header(".")


@pytest.mark.unit
def test_open_sink_directory_destination_raises(tmp_path: Path) -> None:
    with pytest.raises(OutputSinkError) as exc_info, open_sink(tmp_path):
        pass

    assert str(tmp_path) in str(exc_info.value)


@pytest.mark.unit
def test_open_sink_stdout_passes_escaped_bytes_through(monkeypatch: pytest.MonkeyPatch) -> None:
    stdout = io.TextIOWrapper(io.BytesIO(), encoding="utf-8")
    monkeypatch.setattr(sys, "stdout", stdout)

    with open_sink(None) as sink:
        sink.write("=== caf\udce9.txt ===\n")

    assert stdout.buffer.getvalue() == b"=== caf\xe9.txt ===\n"


@pytest.mark.unit
def test_format_filter_stats_shows_missing_files() -> None:
    text = format_filter_stats(FilterStats(total_files=3, missing_files=1, included_files=2))

    assert "Missing on disk:" in text
    assert "Missing on disk:" not in format_filter_stats(FilterStats(total_files=2, included_files=2))


@pytest.mark.unit
def test_format_filtering_summary() -> None:
    stats = FilterStats(total_files=4, included_files=1, excluded_files=3, total_size=400, included_size=100)

    assert format_filtering_summary(stats).splitlines()[0] == "Filtering enabled: 4 files -> 1 files (75.0% reduction)"
