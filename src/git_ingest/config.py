from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

VCS_METADATA_DIR = ".git"
DEFAULT_MAX_FILE_SIZE = 1_048_576
BINARY_PLACEHOLDER = "[Binary file]"


class FilterPreset(StrEnum):
    """Named bundles of exclude patterns applied on top of the user's excludes."""

    RAW = "raw"
    STANDARD = "standard"
    CODE_ONLY = "code-only"
    MINIMAL = "minimal"


class FilterCategory(StrEnum):
    """Groups of exclude patterns that presets are assembled from."""

    LOCK_FILES = "lock_files"
    DEPENDENCIES = "dependencies"
    BUILD_ARTIFACTS = "build_artifacts"
    IDE_FILES = "ide_files"
    MEDIA_FILES = "media_files"
    BINARY_FILES = "binary_files"
    DOCUMENTS = "documents"
    DATA_FILES = "data_files"
    FONTS = "fonts"
    LOGS = "logs"
    CACHE = "cache"
    OS_FILES = "os_files"
    VERSION_CONTROL = "version_control"
    SECRETS = "secrets"


CATEGORY_EXCLUDES: dict[FilterCategory, list[str]] = {
    FilterCategory.LOCK_FILES: [
        "*.lock",
        "Cargo.lock",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "bun.lockb",
        "composer.lock",
        "Pipfile.lock",
        "poetry.lock",
        "Gemfile.lock",
        "go.sum",
        "uv.lock",
    ],
    FilterCategory.DEPENDENCIES: [
        "node_modules/*",
        "vendor/*",
        "target/*",
        ".cargo/*",
        "__pycache__/*",
        ".venv/*",
        "venv/*",
        "env/*",
        "site-packages/*",
        "bower_components/*",
        "obj/*",
        "bin/*",
        "pkg/*",
        "_build/*",
        "deps/*",
    ],
    FilterCategory.BUILD_ARTIFACTS: [
        "dist/*",
        "build/*",
        "out/*",
        ".next/*",
        ".nuxt/*",
        ".svelte-kit/*",
        "coverage/*",
        ".gradle/*",
        "*.tsbuildinfo",
        "*.class",
        "*.o",
        "*.a",
        "*.obj",
        "*.lib",
        "*.pdb",
        "*.pyc",
    ],
    FilterCategory.IDE_FILES: [
        ".vscode/*",
        ".idea/*",
        ".vs/*",
        ".fleet/*",
        ".zed/*",
        "*.swp",
        "*.swo",
        "*~",
        "*.tmp",
        "*.suo",
        "*.user",
        "*.sublime-workspace",
    ],
    FilterCategory.MEDIA_FILES: [
        "*.png",
        "*.jpg",
        "*.jpeg",
        "*.gif",
        "*.bmp",
        "*.tiff",
        "*.ico",
        "*.svg",
        "*.webp",
        "*.avif",
        "*.heic",
        "*.psd",
        "*.mp4",
        "*.avi",
        "*.mov",
        "*.webm",
        "*.mkv",
        "*.mp3",
        "*.wav",
        "*.flac",
        "*.ogg",
        "*.m4a",
    ],
    FilterCategory.BINARY_FILES: [
        "*.zip",
        "*.tar",
        "*.gz",
        "*.bz2",
        "*.xz",
        "*.rar",
        "*.7z",
        "*.dmg",
        "*.iso",
        "*.exe",
        "*.msi",
        "*.deb",
        "*.rpm",
        "*.dll",
        "*.so",
        "*.dylib",
        "*.bin",
        "*.dat",
        "*.img",
    ],
    FilterCategory.DOCUMENTS: [
        "*.pdf",
        "*.doc",
        "*.docx",
        "*.xls",
        "*.xlsx",
        "*.ppt",
        "*.pptx",
        "*.odt",
        "*.ods",
        "*.rtf",
    ],
    FilterCategory.DATA_FILES: [
        "*.db",
        "*.sqlite",
        "*.sqlite3",
        "*.dump",
        "*.sql",
        "*.bak",
        "*.csv",
        "*.json",
        "*.xml",
        "*.yaml",
        "*.yml",
        "*.parquet",
        "*.arrow",
        "*.avro",
    ],
    FilterCategory.FONTS: [
        "*.ttf",
        "*.otf",
        "*.woff",
        "*.woff2",
        "*.eot",
    ],
    FilterCategory.LOGS: [
        "*.log",
        "logs/*",
        "log/*",
        "*.out",
        "*.err",
        "*.pid",
    ],
    FilterCategory.CACHE: [
        ".cache/*",
        "cache/*",
        "tmp/*",
        ".tmp/*",
        "*.cache",
        ".mypy_cache/*",
        ".ruff_cache/*",
        ".pytest_cache/*",
        ".parcel-cache/*",
        ".turbo/*",
        ".eslintcache",
    ],
    FilterCategory.OS_FILES: [
        ".DS_Store",
        "._*",
        "Thumbs.db",
        "ehthumbs.db",
        "desktop.ini",
        "*.lnk",
    ],
    FilterCategory.VERSION_CONTROL: [
        ".git/*",
        ".svn/*",
        ".hg/*",
        ".bzr/*",
        "CVS/*",
        ".gitkeep",
    ],
    FilterCategory.SECRETS: [
        ".env",
        ".env.local",
        ".env.*.local",
        ".env.production",
        ".env.development",
        "*.key",
        "*.pem",
        "*.crt",
        "*.p12",
        "*.pfx",
        "*.keystore",
        "id_rsa",
        "id_ed25519",
        ".ssh/*",
        ".aws/*",
        "secrets.json",
    ],
}

CODE_ONLY_EXTRA_EXCLUDES = [
    "*.md",
    "*.txt",
    "*.rst",
    "LICENSE*",
    "CHANGELOG*",
    "README*",
    "CONTRIBUTING*",
    "AUTHORS*",
    "NOTICE*",
]

MINIMAL_CATEGORIES = (
    FilterCategory.MEDIA_FILES,
    FilterCategory.BINARY_FILES,
    FilterCategory.DOCUMENTS,
    FilterCategory.FONTS,
    FilterCategory.VERSION_CONTROL,
    FilterCategory.SECRETS,
)


def excludes_for_categories(categories: tuple[FilterCategory, ...] | list[FilterCategory]) -> list[str]:
    """Collect the exclude patterns of several categories, sorted and deduplicated.

    Args:
        categories: the categories to merge

    Returns:
        list[str]: the merged exclude patterns
    """
    merged: set[str] = set()
    for category in categories:
        merged.update(CATEGORY_EXCLUDES[category])
    return sorted(merged)


def excludes_for_preset(preset: FilterPreset) -> list[str]:
    """Return the exclude patterns a filter preset contributes.

    Args:
        preset: the preset selected for the run

    Returns:
        list[str]: sorted, duplicate-free exclude patterns (empty for `raw`)
    """
    match preset:
        case FilterPreset.RAW:
            return []
        case FilterPreset.STANDARD:
            return excludes_for_categories(list(FilterCategory))
        case FilterPreset.CODE_ONLY:
            return sorted({*excludes_for_categories(list(FilterCategory)), *CODE_ONLY_EXTRA_EXCLUDES})
        case FilterPreset.MINIMAL:
            return excludes_for_categories(MINIMAL_CATEGORIES)


def normalize_pattern(pattern: str) -> str:
    """Strip whitespace and normalize separators of a user pattern."""
    return (pattern or "").strip().replace("\\", "/")


def normalize_patterns(patterns: list[str] | tuple[str, ...]) -> tuple[str, ...]:
    """Normalize a sequence of patterns, dropping empty entries but keeping order.

    Args:
        patterns: the raw patterns as given on input

    Returns:
        tuple[str, ...]: the normalized, non-empty patterns
    """
    out: list[str] = []
    for p in patterns:
        p2 = normalize_pattern(p)
        if p2:
            out.append(p2)
    return tuple(out)


class SelectionConfig(BaseModel):
    """Immutable per-run configuration consumed by the selection engine.

    Attributes:
        include_patterns: ordered include patterns; non-empty switches to allowlist mode.
        exclude_patterns: ordered user exclude patterns.
        preset_excludes: exclude patterns contributed by the active filter preset.
        max_file_size: files strictly larger than this many bytes are skipped.
        include_untracked: also consider untracked files and stop dropping ignored ones.
        path_prefix: restrict the run to one directory of the repository.
    """

    model_config = ConfigDict(frozen=True)

    include_patterns: tuple[str, ...] = Field(default=(), description="Include patterns")
    exclude_patterns: tuple[str, ...] = Field(default=(), description="User exclude patterns")
    preset_excludes: tuple[str, ...] = Field(default=(), description="Preset exclude patterns")
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=0, description="Size ceiling in bytes")
    include_untracked: bool = Field(default=False, description="Consider untracked files")
    path_prefix: str | None = Field(default=None, description="Repository sub-directory to restrict to")

    @field_validator("include_patterns", "exclude_patterns", "preset_excludes", mode="before")
    @classmethod
    def _normalize(cls, value: list[str] | tuple[str, ...]) -> tuple[str, ...]:
        return normalize_patterns(value)

    @field_validator("path_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str | None) -> str | None:
        if value is None:
            return None
        prefix = normalize_pattern(value).strip("/")
        return prefix or None

    @property
    def effective_excludes(self) -> tuple[str, ...]:
        """User excludes followed by preset excludes."""
        return self.exclude_patterns + self.preset_excludes
