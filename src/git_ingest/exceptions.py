from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class GitIngestError(Exception):
    """Base exception for errors in the git_ingest package."""

    def __str__(self) -> str:
        message = getattr(self, "message", "") or self.__class__.__name__
        reason = getattr(self, "reason", "")
        return f"{message}: {reason}" if reason else message


@dataclass(frozen=True)
class GitCommandError(GitIngestError):
    """Raised when a git command fails."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        detail = self.stderr.strip() or self.stdout.strip()
        return f"`{self.command}` exited with {self.returncode}: {detail}"


@dataclass(frozen=True)
class NotAGitRepositoryError(GitIngestError):
    """Raised when the specified directory is not a Git repository."""

    folder: Path
    message: str = "Not a git repository (use 'git init' or pass a remote URL)"

    def __str__(self) -> str:
        return f"{self.message}: {self.folder}"


@dataclass(frozen=True)
class CloneError(GitIngestError):
    """Raised when a remote repository cannot be cloned."""

    url: str
    reason: str = ""
    message: str = "Failed to clone repository"

    def __str__(self) -> str:
        base = f"{self.message} {self.url}"
        return f"{base}: {self.reason}" if self.reason else base


@dataclass(frozen=True)
class BranchNotFoundError(GitIngestError):
    """Raised when the requested branch cannot be checked out."""

    branch: str
    reason: str = ""
    message: str = "Branch not found"

    def __str__(self) -> str:
        base = f"{self.message}: {self.branch}"
        return f"{base} ({self.reason})" if self.reason else base


@dataclass(frozen=True)
class StatusQueryError(GitIngestError):
    """Raised when the version-control status of a path cannot be determined."""

    path: str
    reason: str = ""
    message: str = "Cannot query git status"

    def __str__(self) -> str:
        base = f"{self.message} for {self.path!r}"
        return f"{base}: {self.reason}" if self.reason else base


@dataclass(frozen=True)
class FileRenderError(GitIngestError):
    """Raised when a selected file cannot be read for a reason other than size or encoding."""

    path: Path
    reason: str = ""
    message: str = "Cannot read file"

    def __str__(self) -> str:
        base = f"{self.message} {self.path}"
        return f"{base}: {self.reason}" if self.reason else base


@dataclass(frozen=True)
class ConfigFileError(GitIngestError):
    """Raised when a settings file cannot be loaded."""

    path: Path
    reason: str = ""
    message: str = "Invalid configuration file"


@dataclass(frozen=True)
class SettingsError(GitIngestError):
    """Raised when the run options fail validation."""

    reason: str = ""
    message: str = "Invalid settings"


@dataclass(frozen=True)
class OutputSinkError(GitIngestError):
    """Raised when the output destination cannot be opened."""

    path: Path
    reason: str = ""
    message: str = "Cannot open output file"

    def __str__(self) -> str:
        base = f"{self.message} {self.path}"
        return f"{base}: {self.reason}" if self.reason else base
