"""Read-only views of a git repository used by the selection engine.

The engine only talks to a repository through the `RepositorySnapshot`
protocol, so alternate backends (or in-memory fakes in tests) can be swapped in
without touching enumeration or policy code. `GitSnapshot` is the production
implementation and shells out to the `git` executable.
"""

from __future__ import annotations

import subprocess  # noqa: S404
from functools import cached_property
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, NamedTuple, Protocol, runtime_checkable

from git_ingest.config import VCS_METADATA_DIR
from git_ingest.exceptions import GitCommandError, NotAGitRepositoryError, StatusQueryError
from git_ingest.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

BLOB = "blob"
TREE = "tree"
COMMIT = "commit"


class TreeEntry(NamedTuple):
    """One entry of a committed tree, with its repository-relative path."""

    path: str
    kind: str
    mode: str = ""


@runtime_checkable
class RepositorySnapshot(Protocol):
    """Capabilities the engine needs from a repository."""

    @property
    def workdir(self) -> Path:
        """Root of the working tree."""
        ...

    @property
    def has_commits(self) -> bool:
        """Whether a committed tree exists (False for a freshly initialized repository)."""
        ...

    def walk_tree(self, prefix: str | None = None) -> Iterator[TreeEntry]:
        """Yield the committed tree's entries in pre-order, optionally limited to `prefix`."""
        ...

    def untracked_paths(self) -> list[str]:
        """Return working-tree paths whose status is new/untracked (ignored ones excluded)."""
        ...

    def is_ignored(self, path: str) -> bool:
        """Report whether `path` is matched by the repository's ignore rules."""
        ...


def run_git(
    args: Sequence[str],
    cwd: Path,
    *,
    ok_returncodes: tuple[int, ...] = (0,),
) -> subprocess.CompletedProcess[str]:
    """Run a git command and return the completed process.

    Args:
        args (Sequence[str]): arguments passed after `git`
        cwd (Path): directory the command runs in
        ok_returncodes (tuple[int, ...]): return codes that are not failures

    Raises:
        GitCommandError: if git cannot be started or exits with an unexpected code

    Returns:
        subprocess.CompletedProcess[str]: the finished process, stdout decoded
            with surrogate escapes so that non UTF-8 paths survive
    """
    cmd = ["git", *args]
    command = " ".join(cmd)
    logger.debug("git_command", command=command, cwd=str(cwd))
    try:
        proc = subprocess.run(  # noqa: S603
            cmd,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="surrogateescape",
            check=False,
        )
    except OSError as e:
        raise GitCommandError(command=command, returncode=-1, stdout="", stderr=str(e)) from e
    if proc.returncode not in ok_returncodes:
        raise GitCommandError(
            command=command,
            returncode=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
        )
    return proc


def split_nul(output: str) -> list[str]:
    """Split `-z` style git output into its non-empty records."""
    return [rec for rec in output.split("\0") if rec]


def parse_ls_tree(output: str) -> Iterator[TreeEntry]:
    """Parse `git ls-tree -z` output.

    Each record reads `<mode> SP <type> SP <object> TAB <path>`.

    Args:
        output (str): raw stdout of `git ls-tree -z`

    Yields:
        TreeEntry: entries in the order git reported them
    """
    for rec in split_nul(output):
        meta, _, path = rec.partition("\t")
        fields = meta.split()
        if len(fields) < 3 or not path:  # noqa: PLR2004
            logger.warning("unparsable_ls_tree_record", record=rec)
            continue
        yield TreeEntry(path=path, kind=fields[1], mode=fields[0])


def parse_untracked_status(output: str) -> list[str]:
    """Extract the untracked (`??`) paths from `git status --porcelain=v1 -z` output.

    Rename and copy records carry their source path as an extra record, which is
    skipped.

    Args:
        output (str): raw stdout of `git status --porcelain=v1 -z`

    Returns:
        list[str]: untracked paths in the order git reported them
    """
    records = split_nul(output)
    paths: list[str] = []
    i = 0
    while i < len(records):
        rec = records[i]
        xy, path = rec[:2], rec[3:]
        if xy == "??":
            paths.append(path)
        elif xy[:1] in {"R", "C"}:
            i += 1
        i += 1
    return paths


def check_relative_path(path: str) -> str:
    """Validate that `path` is a repository-relative path and normalize its separators.

    Args:
        path (str): the candidate path

    Raises:
        StatusQueryError: if the path is empty, absolute or escapes the repository root

    Returns:
        str: the slash-normalized path
    """
    norm = path.replace("\\", "/")
    pure = PurePosixPath(norm)
    if not norm or pure.is_absolute() or ".." in pure.parts:
        raise StatusQueryError(path=path, reason="path is outside the repository root")
    return norm


class GitSnapshot:
    """A working tree plus its `HEAD` commit, read through the git executable."""

    def __init__(self, workdir: Path, ref: str = "HEAD") -> None:
        self._workdir = Path(workdir).resolve()
        self._ref = ref

    @classmethod
    def open(cls, path: Path) -> GitSnapshot:
        """Open the repository whose working tree root is `path`.

        Args:
            path (Path): root of the working tree

        Raises:
            NotAGitRepositoryError: if `path` has no `.git` entry

        Returns:
            GitSnapshot: the snapshot
        """
        if not (Path(path) / VCS_METADATA_DIR).exists():
            raise NotAGitRepositoryError(folder=Path(path))
        return cls(path)

    def __repr__(self) -> str:
        return f"GitSnapshot(workdir={self._workdir!s}, ref={self._ref!r})"

    @property
    def workdir(self) -> Path:
        return self._workdir

    @cached_property
    def has_commits(self) -> bool:
        proc = run_git(
            ["rev-parse", "--verify", "--quiet", f"{self._ref}^{{commit}}"],
            self._workdir,
            ok_returncodes=(0, 1, 128),
        )
        return proc.returncode == 0

    def walk_tree(self, prefix: str | None = None) -> Iterator[TreeEntry]:
        args = ["ls-tree", "-r", "-t", "-z", "--full-tree", self._ref]
        if prefix:
            args += ["--", prefix]
        proc = run_git(args, self._workdir)
        yield from parse_ls_tree(proc.stdout)

    def untracked_paths(self) -> list[str]:
        proc = run_git(
            ["status", "--porcelain=v1", "-z", "--untracked-files=all"],
            self._workdir,
        )
        return parse_untracked_status(proc.stdout)

    @cached_property
    def _ignored(self) -> frozenset[str]:
        proc = run_git(
            ["ls-files", "--others", "--ignored", "--exclude-standard", "-z"],
            self._workdir,
        )
        return frozenset(split_nul(proc.stdout))

    def is_ignored(self, path: str) -> bool:
        norm = check_relative_path(path)
        try:
            ignored = self._ignored
        except GitCommandError as e:
            raise StatusQueryError(path=path, reason=str(e)) from e
        return norm in ignored
