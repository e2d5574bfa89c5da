"""Turn a user-supplied source string into a repository snapshot.

A source is a local working tree, a git URL, or a GitHub reference (full URL,
`tree/<branch>/<path>` URL, or the `owner/repo` shorthand). Remote sources are
shallow-cloned into a temporary directory that lives as long as the
`AcquiredRepository` context.
"""

from __future__ import annotations

import re
import shutil
import tempfile
from enum import StrEnum, auto
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple, Self

from git_ingest.exceptions import BranchNotFoundError, CloneError, GitCommandError
from git_ingest.logging import logger
from git_ingest.repository import GitSnapshot, run_git

if TYPE_CHECKING:
    from types import TracebackType

REMOTE_PREFIXES = (
    "https://github.com/",
    "https://gitlab.com/",
    "https://gist.github.com/",
    "https://raw.githubusercontent.com/",
    "https://gist.githubusercontent.com/",
)
GITHUB_PREFIXES = ("https://github.com/", "http://github.com/", "github.com/")
_GITHUB_NAME = re.compile(r"^[A-Za-z0-9_.-]{1,100}$")
_MISSING_BRANCH_HINTS = ("Remote branch", "not found in upstream", "did not match any")


class SourceKind(StrEnum):
    LOCAL = auto()
    GIT_URL = auto()
    GITHUB = auto()


class Source(NamedTuple):
    """A parsed repository source.

    `location` is the filesystem path for LOCAL sources and the clone URL
    otherwise.
    """

    kind: SourceKind
    location: str
    branch: str | None = None
    path_prefix: str | None = None


def is_remote_url(source: str) -> bool:
    """Check whether `source` designates a remote repository.

    Args:
        source (str): the raw source string

    Returns:
        bool: True for known hosting URLs, ssh-style git URLs and http(s) URLs ending in `.git`
    """
    s = source.strip()
    if s.startswith(REMOTE_PREFIXES):
        return True
    if s.startswith(("git@", "ssh://", "git://")):
        return True
    return s.startswith(("https://", "http://")) and s.rstrip("/").endswith(".git")


def is_valid_github_name(name: str) -> bool:
    """Validate a GitHub owner or repository name."""
    return bool(_GITHUB_NAME.match(name)) and not name.startswith(("-", ".")) and not name.endswith(("-", "."))


def parse_github_url(url: str) -> Source | None:
    """Parse a GitHub web URL into a clone URL, branch and sub-path.

    Supported forms: `https://github.com/<owner>/<repo>[.git]` and
    `https://github.com/<owner>/<repo>/tree/<branch>[/<path>]`.

    Args:
        url (str): the URL to parse

    Returns:
        Source | None: the parsed source, or None if `url` is not a GitHub repository URL
    """
    s = url.strip().rstrip("/")
    rest = next((s[len(p) :] for p in GITHUB_PREFIXES if s.startswith(p)), None)
    if rest is None:
        return None
    parts = rest.split("/")
    if len(parts) < 2:  # noqa: PLR2004
        return None
    owner, repo = parts[0], parts[1].removesuffix(".git")
    if not (is_valid_github_name(owner) and is_valid_github_name(repo)):
        return None

    branch: str | None = None
    prefix: str | None = None
    if len(parts) >= 4 and parts[2] == "tree":  # noqa: PLR2004
        branch = parts[3]
        prefix = "/".join(parts[4:]) or None
    return Source(SourceKind.GITHUB, f"https://github.com/{owner}/{repo}", branch, prefix)


def parse_source(source: str) -> Source:
    """Classify a repository source string.

    An existing local directory always wins, so `owner/repo` only means GitHub
    when no such directory exists.

    Args:
        source (str): local path, git URL, GitHub URL or `owner/repo` shorthand

    Returns:
        Source: the classified source
    """
    s = source.strip() or "."
    if Path(s).is_dir():
        return Source(SourceKind.LOCAL, s)

    parsed = parse_github_url(s)
    if parsed is not None:
        return parsed

    if "://" not in s and not s.startswith("git@") and s.count("/") == 1:
        owner, repo = s.split("/")
        if is_valid_github_name(owner) and is_valid_github_name(repo):
            return Source(SourceKind.GITHUB, f"https://github.com/{owner}/{repo}")

    if is_remote_url(s):
        return Source(SourceKind.GIT_URL, s)
    return Source(SourceKind.LOCAL, s)


def checkout_branch(repo: Path, branch: str) -> None:
    """Check out `branch` in a local working tree.

    Raises:
        BranchNotFoundError: if git refuses the checkout
    """
    try:
        run_git(["checkout", "--quiet", branch], repo)
    except GitCommandError as e:
        raise BranchNotFoundError(branch=branch, reason=e.stderr.strip()) from e
    logger.info("branch_checked_out", repo=str(repo), branch=branch)


def clone_repository(url: str, dest: Path, branch: str | None = None) -> Path:
    """Shallow-clone `url` into `dest`.

    Args:
        url (str): the clone URL
        dest (Path): target directory (must not exist or be empty)
        branch (str | None): branch to clone instead of the remote default

    Raises:
        BranchNotFoundError: if the remote has no such branch
        CloneError: for any other clone failure

    Returns:
        Path: the working tree root
    """
    args = ["clone", "--quiet", "--depth", "1"]
    if branch:
        args += ["--branch", branch, "--single-branch"]
    args += ["--", url, str(dest)]
    try:
        run_git(args, dest.parent)
    except GitCommandError as e:
        stderr = e.stderr.strip()
        if branch and any(hint in stderr for hint in _MISSING_BRANCH_HINTS):
            raise BranchNotFoundError(branch=branch, reason=stderr) from e
        raise CloneError(url=url, reason=stderr or str(e)) from e
    logger.info("repository_cloned", url=url, branch=branch or "default", dest=str(dest))
    return dest


class AcquiredRepository:
    """A repository snapshot ready for ingestion, plus the resources backing it.

    Use as a context manager: temporary clones are removed on exit.
    """

    def __init__(
        self,
        source: Source,
        snapshot: GitSnapshot,
        *,
        tempdir: Path | None = None,
    ) -> None:
        self.source = source
        self.snapshot = snapshot
        self._tempdir = tempdir

    @property
    def path_prefix(self) -> str | None:
        return self.source.path_prefix

    @property
    def is_temporary(self) -> bool:
        return self._tempdir is not None

    def close(self) -> None:
        if self._tempdir is not None:
            shutil.rmtree(self._tempdir, ignore_errors=True)
            logger.debug("temporary_clone_removed", path=str(self._tempdir))
            self._tempdir = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def acquire(source: str, branch: str | None = None) -> AcquiredRepository:
    """Open or clone the repository designated by `source`.

    A branch embedded in a GitHub tree URL takes precedence over `branch`.

    Args:
        source (str): the raw source string
        branch (str | None): branch to check out (local) or clone (remote)

    Raises:
        NotAGitRepositoryError: if a local source is not a git working tree
        BranchNotFoundError: if the branch cannot be checked out or cloned
        CloneError: if cloning fails

    Returns:
        AcquiredRepository: the snapshot and its backing resources
    """
    parsed = parse_source(source)
    if parsed.kind is SourceKind.LOCAL:
        path = Path(parsed.location).expanduser()
        snapshot = GitSnapshot.open(path)
        if branch:
            checkout_branch(snapshot.workdir, branch)
        return AcquiredRepository(parsed, snapshot)

    tempdir = Path(tempfile.mkdtemp(prefix="git-ingest-"))
    try:
        workdir = clone_repository(parsed.location, tempdir / "repo", parsed.branch or branch)
    except BaseException:
        shutil.rmtree(tempdir, ignore_errors=True)
        raise
    return AcquiredRepository(parsed, GitSnapshot(workdir), tempdir=tempdir)
