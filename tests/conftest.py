from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from git_ingest.exceptions import StatusQueryError
from git_ingest.repository import BLOB, TreeEntry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


@dataclass
class FakeSnapshot:
    """In-memory repository snapshot for engine tests."""

    workdir: Path = field(default_factory=Path.cwd)
    tree: list[TreeEntry] = field(default_factory=list)
    untracked: list[str] = field(default_factory=list)
    ignored: set[str] = field(default_factory=set)
    has_commits: bool = True
    broken_paths: set[str] = field(default_factory=set)
    status_queries: list[str] = field(default_factory=list)

    def walk_tree(self, prefix: str | None = None) -> Iterator[TreeEntry]:  # noqa: ARG002
        yield from self.tree

    def untracked_paths(self) -> list[str]:
        return list(self.untracked)

    def is_ignored(self, path: str) -> bool:
        self.status_queries.append(path)
        if path in self.broken_paths:
            raise StatusQueryError(path=path, reason="index is corrupted")
        return path in self.ignored


@pytest.fixture
def fake_snapshot(tmp_path: Path) -> Callable[..., FakeSnapshot]:
    """Build a FakeSnapshot rooted in `tmp_path`; `files` maps paths to content written on disk."""

    def make(
        tracked: list[str] | None = None,
        *,
        files: dict[str, str | bytes] | None = None,
        **kwargs: object,
    ) -> FakeSnapshot:
        for rel, content in (files or {}).items():
            target = tmp_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content, encoding="utf-8")
        tree = [TreeEntry(path=p, kind=BLOB, mode="100644") for p in (tracked or [])]
        return FakeSnapshot(workdir=tmp_path, tree=tree, **kwargs)  # type: ignore[arg-type]

    return make


def git(repo: Path, *args: str) -> str:
    out = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", "-c", "commit.gpgsign=false", *args],
        cwd=str(repo),
        text=True,
        capture_output=True,
        check=True,
    )
    return out.stdout


@dataclass
class GitRepo:
    """A throw-away git repository for integration tests."""

    path: Path

    def write(self, rel: str, content: str | bytes) -> Path:
        target = self.path / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")
        return target

    def commit(self, message: str = "commit", *paths: str) -> None:
        git(self.path, "add", "--", *(paths or (".",)))
        git(self.path, "commit", "--quiet", "--no-verify", "-m", message)

    def git(self, *args: str) -> str:
        return git(self.path, *args)


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepo:
    """An empty, freshly initialized repository on branch `main`."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "--quiet")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    return GitRepo(repo)
