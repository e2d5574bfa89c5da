"""git-ingest: serialize a git working tree into a single LLM-ready text stream.

Overview
--------
Every tracked file of the repository (plus untracked files on request) is run
through the inclusion rules, then written as

    === <relative/path> ===
    <file content, or "[Binary file]">

followed by a blank line. Files above `--max-size` bytes are skipped.

Usage
-----
    git-ingest                                  # current repository to stdout
    git-ingest ../other-repo -o repo.txt        # local repository to a file
    git-ingest owner/repo -i "*.py" -e "tests/*"
    git-ingest https://github.com/owner/repo/tree/main/docs --preset code-only
    git-ingest . --stats                        # show filtering figures only

Defaults may be stored in a YAML file and passed with `--config`; command-line
values override the file.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from git_ingest import __version__
from git_ingest.acquisition import acquire
from git_ingest.config import FilterPreset
from git_ingest.exceptions import GitIngestError, SettingsError
from git_ingest.ingestion import collect_filter_stats, ingest
from git_ingest.logging import logger, setup_logging
from git_ingest.output import format_filter_stats, format_filtering_summary, open_sink, write_header
from git_ingest.settings import Settings, load_settings_file

if TYPE_CHECKING:
    from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; options that are not given stay out of the namespace."""
    p = argparse.ArgumentParser(
        prog="git-ingest",
        description="Transform a git repository into LLM-ready text.",
        argument_default=argparse.SUPPRESS,
    )
    p.add_argument(
        "source",
        nargs="?",
        help="Repository source: local path, git URL, or GitHub owner/repo (default: .).",
    )
    p.add_argument("-o", "--output", type=Path, help="Output file (default: stdout).")
    p.add_argument(
        "-i",
        "--include",
        action="append",
        help="Include only files matching pattern (repeatable).",
    )
    p.add_argument(
        "-e",
        "--exclude",
        action="append",
        help="Exclude files matching pattern (repeatable).",
    )
    p.add_argument(
        "-s",
        "--max-size",
        dest="max_size",
        type=int,
        help="Maximum file size in bytes (default: 1048576).",
    )
    p.add_argument("-b", "--branch", help="Branch to check out (or clone).")
    p.add_argument("-u", "--untracked", action="store_true", help="Include untracked files.")
    p.add_argument(
        "-p",
        "--path-prefix",
        dest="path_prefix",
        help="Only ingest this sub-directory (e.g. a monorepo package).",
    )
    p.add_argument("-q", "--quiet", action="store_true", help="No header, warnings-only logging.")

    presets = p.add_mutually_exclusive_group()
    presets.add_argument(
        "--preset",
        type=FilterPreset,
        choices=list(FilterPreset),
        help="Filter preset: raw, standard, code-only, minimal (default: raw).",
    )
    presets.add_argument(
        "-r",
        "--raw",
        action="store_true",
        help="Disable preset filtering (same as --preset raw).",
    )

    p.add_argument("--stats", action="store_true", help="Show filtering statistics without rendering.")
    p.add_argument("--config", type=Path, help="YAML file with default settings.")
    p.add_argument("--log-file", dest="log_file", help="Log file path.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command-line arguments into run settings.

    Values from `--config` are applied first, explicit arguments override them.

    Args:
        argv (Sequence[str] | None): the arguments, `sys.argv[1:]` when None

    Raises:
        ConfigFileError: if the `--config` file is invalid
        SettingsError: if an option value is out of range

    Returns:
        Settings: the validated settings
    """
    args: dict[str, Any] = vars(build_parser().parse_args(argv))
    config_file = args.pop("config", None)
    if args.pop("raw", False):
        args["preset"] = FilterPreset.RAW

    values: dict[str, Any] = load_settings_file(config_file) if config_file else {}
    values.update(args)
    try:
        return Settings(**values)
    except ValidationError as e:
        reason = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        raise SettingsError(reason=reason) from e


def log_level(settings: Settings) -> int:
    if settings.verbose:
        return logging.DEBUG
    if settings.quiet:
        return logging.WARNING
    return logging.INFO


def run(settings: Settings) -> int:
    """Acquire the repository and render it (or its statistics).

    Args:
        settings (Settings): the run settings

    Raises:
        GitIngestError: on any acquisition, status or read failure

    Returns:
        int: the process exit code
    """
    with acquire(settings.source, settings.branch) as repo:
        config = settings.to_selection_config(repo.path_prefix)
        logger.info(
            "ingest_started",
            source=settings.source,
            workdir=str(repo.snapshot.workdir),
            preset=settings.preset.value,
            includes=list(config.include_patterns),
            excludes=list(config.exclude_patterns),
            untracked=config.include_untracked,
            path_prefix=config.path_prefix,
        )

        if settings.stats:
            stats = collect_filter_stats(repo.snapshot, config)
            sys.stdout.write(format_filter_stats(stats))
            return 0

        with open_sink(settings.output) as sink:
            if not settings.quiet:
                write_header(sink, settings.source, settings.preset)
                if settings.preset is not FilterPreset.RAW:
                    sys.stderr.write(format_filtering_summary(collect_filter_stats(repo.snapshot, config)))
            report = ingest(repo.snapshot, config, sink)

    if report.is_empty:
        print("Warning: No files found to ingest", file=sys.stderr)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = parse_args(argv)
    except GitIngestError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    setup_logging(settings.log_file or None, level=log_level(settings), force=True)

    try:
        return run(settings)
    except GitIngestError as e:
        logger.error("ingest_failed", error=str(e), error_type=type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main_entry() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    main_entry()
