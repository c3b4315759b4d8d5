"""Types for the packaging module."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from optimus.core.errors import ConfigError

ARCHIVE_EXTENSION = ".zip"
ARCHIVE_CONTENT_TYPE = "application/zip"

# The tool's own configuration never ships inside the payload, and neither
# does the .env file that settings read OPTIMUS_API_KEY from.
CONFIG_FILENAME = "submission.yml"
SETTINGS_ENV_FILENAME = ".env"
SECRET_FILENAMES: tuple[str, ...] = (CONFIG_FILENAME, SETTINGS_ENV_FILENAME)

# Always excluded, ahead of any user entries.
BASELINE_EXCLUSIONS: tuple[str, ...] = (
    ".git",
    ".DS_Store",
    "target",
    "node_modules",
    ARCHIVE_EXTENSION,
)

_PYTHON_SUFFIXES: tuple[str, ...] = (
    ".py",
    ".pyi",
    ".ipynb",
    "requirements.txt",
    "pyproject.toml",
    "setup.py",
    "setup.cfg",
    "Pipfile",
    "Pipfile.lock",
    "poetry.lock",
    "environment.yml",
)


class ArchiveFormat(str, Enum):
    """Which files are eligible for the archive.

    REPOSITORY ships everything not excluded. PYTHON ships only files whose
    path ends with one of its fixed suffixes; directories are kept either way.
    """

    REPOSITORY = "repo"
    PYTHON = "py"

    @property
    def allowed_suffixes(self) -> Optional[tuple[str, ...]]:
        """Suffix allow-list, or None when every file is eligible."""
        if self is ArchiveFormat.PYTHON:
            return _PYTHON_SUFFIXES
        return None

    @property
    def label(self) -> str:
        if self is ArchiveFormat.PYTHON:
            return "Python files only"
        return "full repository"

    @classmethod
    def parse(cls, value: "str | ArchiveFormat", source: str = "config") -> "ArchiveFormat":
        """Parse a wire/config value into a format.

        Raises:
            ConfigError: If the value is not one of the accepted formats,
                whatever its source (forced flag, config file or server).
        """
        if isinstance(value, ArchiveFormat):
            return value
        normalised = str(value).strip().lower()
        for member in cls:
            if member.value == normalised:
                return member
        valid = ", ".join(m.value for m in cls)
        raise ConfigError(
            f"Unsupported archive format '{value}' from {source}. Valid options: {valid}"
        )


def build_exclusions(extra: Iterable[str] = ()) -> tuple[str, ...]:
    """Combine the baseline with user entries, de-duplicated, order kept.

    Empty strings are dropped: an empty substring would match every path.
    """
    merged: list[str] = []
    for entry in (*BASELINE_EXCLUSIONS, *extra):
        entry = entry.strip()
        if entry and entry not in merged:
            merged.append(entry)
    return tuple(merged)


@dataclass
class ArchiveArtifact:
    """The single archive produced for a run.

    path is deterministic: {tempdir}/{directory-name}.zip
    """

    path: Path
    archive_format: ArchiveFormat
    file_count: int = 0
    directory_count: int = 0
    size_bytes: int = 0

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass
class UploadResult:
    """Outcome of a successful POST /submit."""

    status_code: int
    body: str
    data: dict = field(default_factory=dict)

    @property
    def message(self) -> str:
        """Human-readable confirmation: the server's message, else the raw body."""
        message = self.data.get("message") if self.data else None
        if isinstance(message, str) and message:
            return message
        return self.body.strip()
