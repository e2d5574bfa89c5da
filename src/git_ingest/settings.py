from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from git_ingest.config import DEFAULT_MAX_FILE_SIZE, FilterPreset, SelectionConfig, excludes_for_preset
from git_ingest.exceptions import ConfigFileError

ENV_FILE = find_dotenv(usecwd=True)
LOG_FILE_ENV = "GIT_INGEST_LOG_FILE"


def env_log_file() -> str:
    """Return the log file configured in the environment (or a `.env` file), if any."""
    if ENV_FILE:
        load_dotenv(ENV_FILE, override=False)
    return os.environ.get(LOG_FILE_ENV, "")


class Settings(BaseModel):
    """Run configuration for the git-ingest command."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    source: str = Field(default=".", description="Local path, git URL or owner/repo shorthand.")
    output: Path | None = Field(default=None, description="Output file (stdout when unset).")
    include: list[str] = Field(default_factory=list, description="Include patterns.")
    exclude: list[str] = Field(default_factory=list, description="Exclude patterns.")
    max_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=0, description="Maximum file size in bytes.")
    branch: str | None = Field(default=None, description="Branch to check out.")
    untracked: bool = Field(default=False, description="Include untracked files.")
    path_prefix: str | None = Field(default=None, description="Only ingest this sub-directory.")
    quiet: bool = Field(default=False, description="Do not write the header.")
    preset: FilterPreset = Field(default=FilterPreset.RAW, description="Filter preset.")
    stats: bool = Field(default=False, description="Print filtering statistics instead of content.")
    log_file: str = Field(default_factory=env_log_file, description="Log file path.")
    verbose: bool = Field(default=False, description="Debug logging.")

    def to_selection_config(self, path_prefix: str | None = None) -> SelectionConfig:
        """Build the engine configuration for this run.

        Args:
            path_prefix (str | None): prefix derived from the source (e.g. a GitHub
                tree URL), used when no explicit `path_prefix` was given

        Returns:
            SelectionConfig: the frozen selection configuration
        """
        return SelectionConfig(
            include_patterns=tuple(self.include),
            exclude_patterns=tuple(self.exclude),
            preset_excludes=tuple(excludes_for_preset(self.preset)),
            max_file_size=self.max_size,
            include_untracked=self.untracked,
            path_prefix=self.path_prefix or path_prefix,
        )


def load_settings_file(path: Path) -> dict[str, Any]:
    """Load setting defaults from a YAML file.

    Keys use the setting names with dashes or underscores (`max-size`,
    `path_prefix`, ...).

    Args:
        path (Path): the YAML file

    Raises:
        ConfigFileError: if the file is unreadable, not a mapping, or holds unknown keys

    Returns:
        dict[str, Any]: the settings found in the file
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigFileError(path=path, reason=e.strerror or str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigFileError(path=path, reason=str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(path=path, reason="top-level document must be a mapping")

    out = {str(k).replace("-", "_"): v for k, v in data.items()}
    unknown = sorted(set(out) - set(Settings.model_fields))
    if unknown:
        raise ConfigFileError(path=path, reason=f"unknown keys: {', '.join(unknown)}")
    try:
        Settings(**out)
    except ValidationError as e:
        raise ConfigFileError(path=path, reason=str(e)) from e
    return out
