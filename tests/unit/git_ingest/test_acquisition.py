from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from git_ingest import acquisition
from git_ingest.acquisition import (
    Source,
    SourceKind,
    acquire,
    clone_repository,
    is_remote_url,
    parse_github_url,
    parse_source,
)
from git_ingest.exceptions import BranchNotFoundError, CloneError, GitCommandError, NotAGitRepositoryError

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.unit
@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/rotkonetworks/githem",
        "https://gitlab.com/group/project",
        "git@github.com:owner/repo.git",
        "ssh://git@example.com/repo.git",
        "https://example.com/some/repo.git",
    ],
)
def test_is_remote_url_accepts_remote_forms(url: str) -> None:
    assert is_remote_url(url)


@pytest.mark.unit
@pytest.mark.parametrize("source", [".", "../repo", "/srv/git/repo", "https://example.com/page"])
def test_is_remote_url_rejects_local_paths(source: str) -> None:
    assert not is_remote_url(source)


@pytest.mark.unit
def test_parse_github_url_with_tree_branch_and_path() -> None:
    parsed = parse_github_url("https://github.com/owner/repo/tree/dev/crates/core/")

    assert parsed == Source(SourceKind.GITHUB, "https://github.com/owner/repo", "dev", "crates/core")


@pytest.mark.unit
def test_parse_github_url_strips_git_suffix() -> None:
    parsed = parse_github_url("github.com/owner/repo.git")

    assert parsed is not None
    assert parsed.location == "https://github.com/owner/repo"
    assert parsed.branch is None


@pytest.mark.unit
def test_parse_github_url_rejects_non_github() -> None:
    assert parse_github_url("https://gitlab.com/owner/repo") is None
    assert parse_github_url("https://github.com/owner") is None


@pytest.mark.unit
def test_parse_source_prefers_existing_local_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "owner" / "repo").mkdir(parents=True)
    monkeypatch.chdir(tmp_path)

    assert parse_source("owner/repo") == Source(SourceKind.LOCAL, "owner/repo")


@pytest.mark.unit
def test_parse_source_shorthand_and_urls(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert parse_source("owner/repo") == Source(SourceKind.GITHUB, "https://github.com/owner/repo")
    assert parse_source("https://gitlab.com/g/p").kind is SourceKind.GIT_URL
    assert parse_source("missing-dir").kind is SourceKind.LOCAL
    assert parse_source("").location == "."


@pytest.mark.unit
def test_acquire_local_requires_git_dir(tmp_path: Path) -> None:
    with pytest.raises(NotAGitRepositoryError):
        acquire(str(tmp_path))


@pytest.mark.unit
def test_acquire_local_checks_out_branch(tmp_path: Path, mocker: MockerFixture) -> None:
    (tmp_path / ".git").mkdir()
    checkout = mocker.patch.object(acquisition, "checkout_branch")

    with acquire(str(tmp_path), branch="feature") as repo:
        assert repo.snapshot.workdir == tmp_path.resolve()
        assert not repo.is_temporary

    checkout.assert_called_once_with(tmp_path.resolve(), "feature")


@pytest.mark.unit
def test_acquire_remote_clones_into_temporary_directory(mocker: MockerFixture) -> None:
    clone = mocker.patch.object(acquisition, "clone_repository", side_effect=lambda url, dest, branch: dest)

    with acquire("https://github.com/owner/repo/tree/main/docs", branch="ignored") as repo:
        tempdir = repo.snapshot.workdir.parent
        assert repo.is_temporary
        assert repo.path_prefix == "docs"
        assert tempdir.exists()

    assert clone.call_args.args[0] == "https://github.com/owner/repo"
    assert clone.call_args.args[2] == "main"
    assert not tempdir.exists()


@pytest.mark.unit
def test_acquire_remote_cleans_up_after_clone_failure(mocker: MockerFixture) -> None:
    created: list[Path] = []

    def failing_clone(url: str, dest: Path, branch: str | None) -> Path:
        created.append(dest.parent)
        raise CloneError(url=url, reason="repository not found")

    mocker.patch.object(acquisition, "clone_repository", side_effect=failing_clone)

    with pytest.raises(CloneError):
        acquire("owner/does-not-exist-anywhere")

    assert created
    assert not created[0].exists()


@pytest.mark.unit
def test_clone_repository_maps_missing_branch(mocker: MockerFixture, tmp_path: Path) -> None:
    mocker.patch.object(
        acquisition,
        "run_git",
        side_effect=GitCommandError(
            command="git clone",
            returncode=128,
            stdout="",
            stderr="warning: Could not find remote branch nope to clone.\nfatal: Remote branch nope not found in upstream origin",
        ),
    )

    with pytest.raises(BranchNotFoundError):
        clone_repository("https://github.com/o/r", tmp_path / "repo", "nope")


@pytest.mark.unit
def test_clone_repository_reports_other_failures(mocker: MockerFixture, tmp_path: Path) -> None:
    mocker.patch.object(
        acquisition,
        "run_git",
        side_effect=GitCommandError(command="git clone", returncode=128, stdout="", stderr="fatal: repository not found"),
    )

    with pytest.raises(CloneError) as exc_info:
        clone_repository("https://github.com/o/r", tmp_path / "repo")

    assert "repository not found" in str(exc_info.value)
