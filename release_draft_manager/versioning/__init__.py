"""Version resolution from project manifests."""

from .exceptions import ManifestNotFoundError, ManifestUnreadableError, VersionFieldMissingError
from .manifests import Archetype, VersionOutcome, parse_archetypes, resolve_version, resolve_versions, select_version

__all__ = [
    "Archetype",
    "VersionOutcome",
    "ManifestNotFoundError",
    "ManifestUnreadableError",
    "VersionFieldMissingError",
    "parse_archetypes",
    "resolve_version",
    "resolve_versions",
    "select_version",
]
