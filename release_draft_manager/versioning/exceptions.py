"""Exceptions raised while resolving a version from a project manifest."""

from pathlib import Path

from release_draft_manager.exceptions import DraftReleaseError


class ManifestError(DraftReleaseError):
    """Base class for manifest errors; records the archetype and manifest path."""

    def __init__(self, message: str, archetype: str, path: Path) -> None:
        """Initializes the exception with the archetype and manifest path involved."""
        super().__init__(message)
        self.archetype = archetype
        self.path = path


class ManifestNotFoundError(ManifestError):
    """Raised when the manifest file expected for an archetype does not exist."""

    kind = "ManifestNotFound"


class ManifestUnreadableError(ManifestError):
    """Raised when the manifest file exists but cannot be read or parsed."""

    kind = "ManifestUnreadable"


class VersionFieldMissingError(ManifestError):
    """Raised when the manifest parses but does not declare a version."""

    kind = "VersionFieldMissing"
