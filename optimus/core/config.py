"""Project configuration: the ``submission.yml`` file.

Schema (YAML)
    api_key: str                      required (or OPTIMUS_API_KEY)
    competition_id: str | null
    format: "repo" | "py" | null      skips the /check call when set
    server_url: str                   default http://localhost:3000
    compression_level: int            0-9, default 6
    exclude: [str]                    extra exclusion substrings
    preferences:
      auto_confirm: bool              default false
      save_history: bool              default true

The pipeline never reads the file itself; the CLI loads it here and hands
a resolved SubmissionTarget to the orchestrator.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from optimus.core.errors import ConfigError
from optimus.packaging.types import ArchiveFormat

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:3000"
DEFAULT_COMPRESSION_LEVEL = 6

# Names accepted by --compression in addition to plain integers
COMPRESSION_PRESETS: dict[str, int] = {
    "store": 0,
    "fastest": 1,
    "normal": 6,
    "best": 9,
}

DEFAULT_CONFIG_TEMPLATE = """\
# Optimus submission configuration
# Keep this file out of version control if it contains your API key.

# API key issued by the submission service (or set OPTIMUS_API_KEY)
api_key: "your-api-key-goes-here"

# Competition to submit to (optional)
competition_id: null

# Archive format: "repo" (whole directory) or "py" (Python files only).
# Leave empty to let the server decide.
format: null

server_url: "http://localhost:3000"

# 0 (store) to 9 (best)
compression_level: 6

# Extra substrings to exclude from the archive
exclude: []

preferences:
  auto_confirm: false
  save_history: true
"""


class Preferences(BaseModel):
    model_config = {"extra": "ignore"}

    auto_confirm: bool = False
    save_history: bool = True


class SubmissionConfig(BaseModel):
    """Validated contents of submission.yml."""

    model_config = {"extra": "ignore"}

    api_key: str = ""
    competition_id: Optional[str] = None
    format: Optional[ArchiveFormat] = None
    server_url: str = DEFAULT_SERVER_URL
    compression_level: int = Field(default=DEFAULT_COMPRESSION_LEVEL, ge=0, le=9)
    exclude: list[str] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)

    @field_validator("format", mode="before")
    @classmethod
    def empty_format_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("api_key", mode="before")
    @classmethod
    def coerce_api_key(cls, v):
        # `api_key: 123456` loads as an int, `api_key:` as None
        if v is None:
            return ""
        return str(v)

    @field_validator("competition_id", mode="before")
    @classmethod
    def coerce_competition_id(cls, v):
        # YAML turns `competition_id: 123` into an int
        if v is None:
            return None
        return str(v)

    @field_validator("exclude", mode="before")
    @classmethod
    def none_is_empty_list(cls, v):
        return [] if v is None else v


@dataclass(frozen=True)
class SubmissionTarget:
    """Where and how to submit, after merging config and CLI overrides."""

    server_url: str
    api_key: str
    competition_id: Optional[str] = None
    compression_level: int = DEFAULT_COMPRESSION_LEVEL


@dataclass
class CliOverrides:
    """Values given on the command line. None means "not given"."""

    api_key: Optional[str] = None
    server_url: Optional[str] = None
    competition_id: Optional[str] = None
    compression_level: Optional[int] = None
    forced_format: Optional[str] = None
    auto_confirm: bool = False
    extra_exclusions: list[str] = field(default_factory=list)


def parse_compression_level(raw: "str | int") -> int:
    """Accept 0-9 or one of the preset names (store, fastest, normal, best)."""
    if isinstance(raw, int):
        level = raw
    else:
        text = str(raw).strip().lower()
        if text in COMPRESSION_PRESETS:
            return COMPRESSION_PRESETS[text]
        try:
            level = int(text)
        except ValueError as exc:
            presets = ", ".join(COMPRESSION_PRESETS)
            raise ConfigError(
                f"Invalid compression level '{raw}' (expected 0-9 or one of: {presets})"
            ) from exc
    if not 0 <= level <= 9:
        raise ConfigError(f"Compression level must be between 0 and 9, got {level}")
    return level


def load_config(path: Path) -> SubmissionConfig:
    """Load and validate submission.yml.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or does not
            match the schema.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(
            f"Configuration file {path} not found. Run 'optimus init' to create one."
        )

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a YAML mapping at the top level")

    try:
        config = SubmissionConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}:\n{exc}") from exc

    logger.debug("Loaded config from %s (format=%s)", path, config.format)
    return config


def write_default_config(path: Path, overwrite: bool = False) -> Path:
    """Write the commented default template to path.

    Raises:
        ConfigError: If the file exists and overwrite is False, or it
            cannot be written.
    """
    path = Path(path)
    if path.exists() and not overwrite:
        raise ConfigError(f"{path} already exists; refusing to overwrite it")

    try:
        path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot write {path}: {exc}") from exc

    logger.info("Wrote default configuration to %s", path)
    return path


def resolve_target(
    config: SubmissionConfig,
    overrides: CliOverrides,
    fallback_api_key: str = "",
) -> SubmissionTarget:
    """Merge CLI overrides over the config file. CLI wins.

    fallback_api_key (from OPTIMUS_API_KEY) is used only when neither the
    command line nor the file provides one.
    """
    api_key = overrides.api_key or config.api_key or fallback_api_key
    if not api_key:
        raise ConfigError(
            "No API key configured. Set api_key in submission.yml, "
            "pass --api-key, or export OPTIMUS_API_KEY."
        )

    compression_level = config.compression_level
    if overrides.compression_level is not None:
        compression_level = parse_compression_level(overrides.compression_level)

    return SubmissionTarget(
        server_url=(overrides.server_url or config.server_url).rstrip("/"),
        api_key=api_key,
        competition_id=overrides.competition_id or config.competition_id,
        compression_level=compression_level,
    )
