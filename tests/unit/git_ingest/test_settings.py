from pathlib import Path

import pytest
from pydantic import ValidationError

from git_ingest.config import (
    CATEGORY_EXCLUDES,
    DEFAULT_MAX_FILE_SIZE,
    FilterCategory,
    FilterPreset,
    SelectionConfig,
    excludes_for_preset,
)
from git_ingest.exceptions import ConfigFileError
from git_ingest.settings import Settings, load_settings_file


@pytest.mark.unit
def test_settings_defaults() -> None:
    settings = Settings()

    assert settings.source == "."
    assert settings.output is None
    assert settings.max_size == DEFAULT_MAX_FILE_SIZE
    assert settings.preset is FilterPreset.RAW
    assert settings.untracked is False


@pytest.mark.unit
def test_settings_rejects_negative_size() -> None:
    with pytest.raises(ValidationError):
        Settings(max_size=-1)


@pytest.mark.unit
def test_to_selection_config_combines_user_and_preset_excludes() -> None:
    settings = Settings(include=["*.py"], exclude=["docs"], preset=FilterPreset.MINIMAL, untracked=True)

    config = settings.to_selection_config()

    assert config.include_patterns == ("*.py",)
    assert config.exclude_patterns == ("docs",)
    assert config.effective_excludes[0] == "docs"
    assert "*.png" in config.preset_excludes
    assert config.include_untracked is True


@pytest.mark.unit
def test_to_selection_config_explicit_prefix_wins_over_source_prefix() -> None:
    assert Settings(path_prefix="api").to_selection_config("docs").path_prefix == "api"
    assert Settings().to_selection_config("docs").path_prefix == "docs"


@pytest.mark.unit
def test_selection_config_normalizes_patterns_and_is_frozen() -> None:
    config = SelectionConfig(include_patterns=[" src\\*.py ", ""], path_prefix="/p2p/")

    assert config.include_patterns == ("src/*.py",)
    assert config.path_prefix == "p2p"
    with pytest.raises(ValidationError):
        config.max_file_size = 3  # type: ignore[misc]


@pytest.mark.unit
def test_presets() -> None:
    assert excludes_for_preset(FilterPreset.RAW) == []
    standard = excludes_for_preset(FilterPreset.STANDARD)
    code_only = excludes_for_preset(FilterPreset.CODE_ONLY)
    minimal = excludes_for_preset(FilterPreset.MINIMAL)

    assert standard == sorted(set(standard))
    assert set(standard) < set(code_only)
    assert "README*" in code_only
    assert set(minimal) < set(standard)
    assert set(CATEGORY_EXCLUDES[FilterCategory.SECRETS]) <= set(minimal)


@pytest.mark.unit
def test_load_settings_file(tmp_path: Path) -> None:
    cfg = tmp_path / "ingest.yaml"
    cfg.write_text("max-size: 2048\ninclude:\n  - '*.rs'\npreset: code-only\n", encoding="utf-8")

    values = load_settings_file(cfg)

    assert values == {"max_size": 2048, "include": ["*.rs"], "preset": "code-only"}


@pytest.mark.unit
@pytest.mark.parametrize(
    ("content", "reason"),
    [
        ("- just\n- a list\n", "mapping"),
        ("colour: blue\n", "unknown keys: colour"),
        ("max_size: -5\n", "max_size"),
        ("include: [unclosed\n", ""),
    ],
)
def test_load_settings_file_rejects_invalid_documents(tmp_path: Path, content: str, reason: str) -> None:
    cfg = tmp_path / "bad.yaml"
    cfg.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigFileError) as exc_info:
        load_settings_file(cfg)

    assert reason in str(exc_info.value)


@pytest.mark.unit
def test_load_settings_file_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigFileError):
        load_settings_file(tmp_path / "missing.yaml")


@pytest.mark.unit
def test_log_file_defaults_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIT_INGEST_LOG_FILE", "/tmp/ingest.log")

    assert Settings().log_file == "/tmp/ingest.log"  # noqa: S108
