"""Release notes configuration: loading, validation, and defaults.

The configuration is a YAML document such as::

    language: rust
    tag-template: v$VERSION
    name-template: $TAG ($BRANCH)
    categories:
      - title: Features
        labels: [feature, enhancement]
      - h3: Bug Fixes
        label: bug
    exclude-labels: [skip-changelog]
    change-template: "* $TITLE (#$NUMBER) @$AUTHOR"
    template: |
      ## What's changed

      $CHANGES

Once loaded, a ReleaseConfig is frozen and shared read-only by every release stream.
"""

import os
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from ruamel.yaml.error import YAMLError

from release_draft_manager.configuration.exceptions import ConfigInvalidError, ConfigNotFoundError
from release_draft_manager.utils.constants import (
    CONFIG_FILE_NAMES,
    DEFAULT_CATEGORY_HEADING_LEVEL,
    DEFAULT_CHANGE_TEMPLATE,
    DEFAULT_NAME_TEMPLATE,
    DEFAULT_TAG_PREFIX,
    DEFAULT_TEMPLATE,
)
from release_draft_manager.utils.yaml import load_yaml_file
from release_draft_manager.versioning import parse_archetypes

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

HEADING_KEYS: dict[str, int] = {
    "title": DEFAULT_CATEGORY_HEADING_LEVEL,
    "h1": 1,
    "h2": 2,
    "h3": 3,
}


def _normalize_label(label: str) -> str:
    normalized = label.strip().lower()
    if not normalized:
        raise ValueError("labels must not be empty strings")
    return normalized


class Category(BaseModel):
    """A labeled grouping of pull requests rendered under one heading."""

    model_config = ConfigDict(frozen=True)

    title: str
    heading_level: int = Field(default=DEFAULT_CATEGORY_HEADING_LEVEL, ge=1, le=3)
    labels: tuple[str, ...]

    @property
    def heading(self) -> str:
        """Markdown heading for the category."""
        return f"{'#' * self.heading_level} {self.title}"


class RawCategory(BaseModel):
    """A category entry exactly as written in the YAML document."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    h1: str | None = None
    h2: str | None = None
    h3: str | None = None
    label: str | None = None
    labels: list[str] | None = None

    @model_validator(mode="after")
    def _check_heading_and_labels(self) -> "RawCategory":
        headings = [key for key in HEADING_KEYS if getattr(self, key) is not None]
        if not headings:
            raise ValueError("Category must include one of: title, h1, h2, h3.")
        if len(headings) > 1:
            raise ValueError(f"Category must include only one of: title, h1, h2, h3 (found {', '.join(headings)}).")
        if self.label is not None and self.labels is not None:
            raise ValueError("Category must include only one of: label, labels.")
        return self

    def to_category(self) -> Category:
        """Resolve the heading key and labels into a Category."""
        key = next(key for key in HEADING_KEYS if getattr(self, key) is not None)
        title = str(getattr(self, key)).strip()
        if not title:
            raise ValueError(f"Category {key} must not be empty.")
        raw_labels = [self.label] if self.label is not None else list(self.labels or [])
        labels: list[str] = []
        for raw_label in raw_labels:
            label = _normalize_label(raw_label)
            if label not in labels:
                labels.append(label)
        if not labels:
            raise ValueError(f"Category '{title}' must include at least one label.")
        return Category(title=title, heading_level=HEADING_KEYS[key], labels=tuple(labels))


class RawReleaseConfig(BaseModel):
    """The release notes configuration document before defaults are applied."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    language: str | None = None
    tag_template: str | None = Field(default=None, alias="tag-template")
    name_template: str | None = Field(default=None, alias="name-template")
    categories: list[RawCategory] | None = None
    exclude_labels: list[str] | None = Field(default=None, alias="exclude-labels")
    change_template: str | None = Field(default=None, alias="change-template")
    template: str | None = None

    @field_validator("exclude_labels")
    @classmethod
    def _exclude_labels_not_empty(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [_normalize_label(label) for label in value]


def _clean_template(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ReleaseConfig(BaseModel):
    """Validated, immutable release notes configuration."""

    model_config = ConfigDict(frozen=True)

    language: str | None = None
    tag_template: str | None = None
    name_template: str = DEFAULT_NAME_TEMPLATE
    categories: tuple[Category, ...] = ()
    exclude_labels: tuple[str, ...] = ()
    change_template: str = DEFAULT_CHANGE_TEMPLATE
    template: str = DEFAULT_TEMPLATE

    def resolve_tag_template(self, tag_prefix: str = DEFAULT_TAG_PREFIX, directory: str = "") -> str:
        """Tag template to use for a stream, composing the tag prefix into the default."""
        if self.tag_template is not None:
            return self.tag_template
        if directory:
            return f"$DIRECTORY/{tag_prefix}$VERSION"
        return f"{tag_prefix}$VERSION"

    @classmethod
    def from_raw(cls, raw: RawReleaseConfig) -> "ReleaseConfig":
        """Apply defaults and normalization to a raw configuration document."""
        language = None
        if raw.language is not None and raw.language.strip():
            archetypes = parse_archetypes(raw.language)
            language = ",".join(archetype.value for archetype in archetypes)

        exclude_labels: list[str] = []
        for label in raw.exclude_labels or []:
            if label not in exclude_labels:
                exclude_labels.append(label)

        return cls(
            language=language,
            tag_template=_clean_template(raw.tag_template),
            name_template=_clean_template(raw.name_template) or DEFAULT_NAME_TEMPLATE,
            categories=tuple(category.to_category() for category in raw.categories or []),
            exclude_labels=tuple(exclude_labels),
            change_template=_clean_template(raw.change_template) or DEFAULT_CHANGE_TEMPLATE,
            template=_clean_template(raw.template) or DEFAULT_TEMPLATE,
        )


def parse_release_config(document: Any, source: str = "<config>") -> ReleaseConfig:
    """Validate a parsed YAML document into a ReleaseConfig."""
    if document is None:
        return ReleaseConfig()
    if not isinstance(document, dict):
        raise ConfigInvalidError(f"Invalid config in {source}: expected a mapping at the top level, got {type(document).__name__}")
    try:
        raw = RawReleaseConfig.model_validate(document)
        return ReleaseConfig.from_raw(raw)
    except ValidationError as exc:
        details = "; ".join(f"{'.'.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}" for error in exc.errors())
        raise ConfigInvalidError(f"Invalid config in {source}: {details}") from exc
    except ValueError as exc:
        raise ConfigInvalidError(f"Invalid config in {source}: {exc}") from exc


def read_release_config(path: Path) -> ReleaseConfig:
    """Read and validate a configuration file."""
    try:
        document = load_yaml_file(path)
    except OSError as exc:
        raise ConfigInvalidError(f"Failed to read config file {path}: {exc}") from exc
    except YAMLError as exc:
        raise ConfigInvalidError(f"Invalid config YAML in {path}: {exc}") from exc
    config = parse_release_config(document, source=str(path))
    logger.info("Loaded release notes configuration", path=str(path), categories=len(config.categories))
    return config


def resolve_config_path(value: str | Path, cwd: Path, home: Path | None = None) -> Path:
    """Resolve an explicit config path, expanding ``~`` and anchoring relative paths at ``cwd``."""
    raw = str(value).strip()
    if raw == "~" or raw.startswith("~/"):
        if home is None:
            home_env = os.environ.get("HOME")
            if not home_env:
                raise ConfigInvalidError("HOME is not set; cannot expand '~' in the config file path.")
            home = Path(home_env)
        return home / raw[2:] if raw != "~" else home
    path = Path(raw)
    if path.is_absolute():
        return path
    return cwd / path


def discover_config_path(cwd: Path, home: Path | None = None) -> Path | None:
    """Find a configuration file in the home directory, then in the repository."""
    if home is None and os.environ.get("HOME"):
        home = Path(os.environ["HOME"])
    search_roots = [root for root in (home, cwd) if root is not None]
    for root in search_roots:
        for file_name in CONFIG_FILE_NAMES:
            candidate = root / ".github" / file_name
            if candidate.is_file():
                return candidate
    return None


def load_release_config(config_file: str | Path | None, cwd: Path, home: Path | None = None) -> ReleaseConfig:
    """Load the release notes configuration from an explicit or discovered file.

    Falls back to defaults when no explicit path is given and no file is discovered.

    Raises:
        ConfigNotFoundError: An explicit path was given but does not exist.
        ConfigInvalidError: The file cannot be read, parsed, or validated.
    """
    if config_file is not None and str(config_file).strip():
        path = resolve_config_path(config_file, cwd, home)
        if not path.is_file():
            raise ConfigNotFoundError(f"Config file not found: {path}")
        return read_release_config(path)

    discovered = discover_config_path(cwd, home)
    if discovered is None:
        logger.info("No release notes configuration found, using defaults", cwd=str(cwd))
        return ReleaseConfig()
    return read_release_config(discovered)
