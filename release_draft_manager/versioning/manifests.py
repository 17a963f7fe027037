"""Resolves the release version from the manifest of a language archetype.

Each archetype knows one manifest file name and the field (or fallback fields)
holding its version. Versions are returned verbatim as opaque strings; no
semantic version parsing takes place here.
"""

import json
import re
import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable

import structlog
from ruamel.yaml.error import YAMLError

from release_draft_manager.configuration.exceptions import ConfigInvalidError
from release_draft_manager.utils.yaml import load_yaml_string

from .exceptions import ManifestError, ManifestNotFoundError, ManifestUnreadableError, VersionFieldMissingError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class Archetype(str, Enum):
    """Language or framework conventions that determine the manifest shape."""

    RUST = "rust"
    NODEJS = "nodejs"
    PYTHON = "python"
    DART = "dart"


ARCHETYPE_ALIASES: dict[str, Archetype] = {
    "rust": Archetype.RUST,
    "cargo": Archetype.RUST,
    "nodejs": Archetype.NODEJS,
    "node": Archetype.NODEJS,
    "javascript": Archetype.NODEJS,
    "typescript": Archetype.NODEJS,
    "js": Archetype.NODEJS,
    "ts": Archetype.NODEJS,
    "python": Archetype.PYTHON,
    "py": Archetype.PYTHON,
    "dart": Archetype.DART,
    "flutter": Archetype.DART,
}

MANIFEST_FILE_NAMES: dict[Archetype, str] = {
    Archetype.RUST: "Cargo.toml",
    Archetype.NODEJS: "package.json",
    Archetype.PYTHON: "pyproject.toml",
    Archetype.DART: "pubspec.yaml",
}

# Lookup paths inside the parsed manifest, tried in order.
VERSION_FIELD_PATHS: dict[Archetype, tuple[tuple[str, ...], ...]] = {
    Archetype.RUST: (("package", "version"), ("workspace", "package", "version")),
    Archetype.NODEJS: (("version",),),
    Archetype.PYTHON: (("project", "version"), ("tool", "poetry", "version")),
    Archetype.DART: (("version",),),
}

_ARCHETYPE_SEPARATOR = re.compile(r"[\s,]+")


@dataclass(frozen=True)
class VersionOutcome:
    """Result of resolving one archetype: either a version or the error that prevented it."""

    archetype: Archetype
    path: Path
    version: str | None = None
    error: ManifestError | None = None

    @property
    def succeeded(self) -> bool:
        """Whether a version was resolved."""
        return self.version is not None


def parse_archetype(value: str) -> Archetype:
    """Map a single archetype name or alias to an Archetype."""
    archetype = ARCHETYPE_ALIASES.get(value.strip().lower())
    if archetype is None:
        known = ", ".join(sorted(ARCHETYPE_ALIASES))
        raise ConfigInvalidError(f"Unknown language archetype '{value}'. Known archetypes: {known}")
    return archetype


def parse_archetypes(value: str) -> list[Archetype]:
    """Parse a comma or whitespace separated list of archetypes, keeping order and dropping duplicates."""
    archetypes: list[Archetype] = []
    for part in _ARCHETYPE_SEPARATOR.split(value.strip()):
        if not part:
            continue
        archetype = parse_archetype(part)
        if archetype not in archetypes:
            archetypes.append(archetype)
    return archetypes


def manifest_path(archetype: Archetype, directory: Path) -> Path:
    """Location of the manifest for an archetype under a directory."""
    return directory / MANIFEST_FILE_NAMES[archetype]


def _parse_toml(content: str) -> Any:
    return tomllib.loads(content)


def _parse_json(content: str) -> Any:
    return json.loads(content)


_PARSERS: dict[Archetype, Callable[[str], Any]] = {
    Archetype.RUST: _parse_toml,
    Archetype.NODEJS: _parse_json,
    Archetype.PYTHON: _parse_toml,
    Archetype.DART: load_yaml_string,
}

_PARSE_ERRORS = (tomllib.TOMLDecodeError, json.JSONDecodeError, YAMLError)


def _lookup(document: Any, field_path: tuple[str, ...]) -> Any:
    current = document
    for key in field_path:
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def extract_version(archetype: Archetype, document: Any) -> str | None:
    """Return the version declared in a parsed manifest, or None when it is absent.

    Non-string values (such as Cargo's ``version.workspace = true``) count as absent.
    """
    for field_path in VERSION_FIELD_PATHS[archetype]:
        value = _lookup(document, field_path)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def resolve_version(archetype: Archetype, directory: Path) -> str:
    """Read the manifest for an archetype under a directory and return its version.

    Raises:
        ManifestNotFoundError: The manifest file does not exist.
        ManifestUnreadableError: The manifest exists but could not be read or parsed.
        VersionFieldMissingError: The manifest parsed but declares no version.
    """
    path = manifest_path(archetype, directory)
    if not path.is_file():
        raise ManifestNotFoundError(f"{MANIFEST_FILE_NAMES[archetype]} not found at {path}", archetype=archetype.value, path=path)

    try:
        content = path.read_text(encoding="utf-8")
        document = _PARSERS[archetype](content)
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestUnreadableError(f"Failed to read {path}: {exc}", archetype=archetype.value, path=path) from exc
    except _PARSE_ERRORS as exc:
        raise ManifestUnreadableError(f"Failed to parse {path}: {exc}", archetype=archetype.value, path=path) from exc

    version = extract_version(archetype, document)
    if version is None:
        fields = " or ".join(".".join(field_path) for field_path in VERSION_FIELD_PATHS[archetype])
        raise VersionFieldMissingError(f"{path} does not declare {fields}", archetype=archetype.value, path=path)

    logger.debug("Resolved version from manifest", archetype=archetype.value, path=str(path), version=version)
    return version


def resolve_versions(archetypes: Iterable[Archetype], directory: Path) -> list[VersionOutcome]:
    """Resolve every archetype independently; a failure never stops the others."""
    outcomes: list[VersionOutcome] = []
    for archetype in archetypes:
        path = manifest_path(archetype, directory)
        try:
            version = resolve_version(archetype, directory)
        except ManifestError as exc:
            logger.warning("Could not resolve version from manifest", archetype=archetype.value, path=str(path), kind=exc.kind, error=exc.message)
            outcomes.append(VersionOutcome(archetype=archetype, path=path, error=exc))
        else:
            outcomes.append(VersionOutcome(archetype=archetype, path=path, version=version))
    return outcomes


def select_version(outcomes: list[VersionOutcome]) -> VersionOutcome:
    """Pick the first successful outcome in configured order.

    Raises the first archetype's error when none succeeded.
    """
    if not outcomes:
        raise ConfigInvalidError("No language archetypes provided.")
    for outcome in outcomes:
        if outcome.succeeded:
            return outcome
    first_error = outcomes[0].error
    assert first_error is not None
    raise first_error
