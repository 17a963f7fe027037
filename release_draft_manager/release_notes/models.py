"""Data models for release notes generation."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


def normalize_directory(directory: str | None) -> str:
    """Normalize a directory input to a repository-relative path without surrounding slashes.

    ``None``, ``""``, ``"."`` and ``"./"`` all mean the repository root and become ``""``.
    """
    if not directory:
        return ""
    normalized = directory.strip().replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    normalized = normalized.strip("/")
    if normalized == ".":
        return ""
    return "/".join(part for part in normalized.split("/") if part and part != ".")


class ReleaseKey(BaseModel):
    """Identifies a release stream: a branch, optionally scoped to a directory."""

    model_config = ConfigDict(frozen=True)

    branch: str
    directory: str = ""

    @field_validator("branch")
    @classmethod
    def _branch_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("branch must not be empty")
        return value

    @field_validator("directory", mode="before")
    @classmethod
    def _normalize_directory(cls, value: Any) -> str:
        return normalize_directory(value)

    def __str__(self) -> str:
        """Render the key as ``branch`` or ``branch:directory`` for messages."""
        if self.directory:
            return f"{self.branch}:{self.directory}"
        return self.branch


class ChangeRequest(BaseModel):
    """Immutable snapshot of a merged pull request."""

    model_config = ConfigDict(frozen=True)

    title: str
    author: str
    number: int
    url: str
    labels: frozenset[str] = frozenset()
    merged_at: datetime

    @field_validator("labels", mode="before")
    @classmethod
    def _normalize_labels(cls, value: Any) -> frozenset[str]:
        return frozenset(str(label).strip().lower() for label in value or () if str(label).strip())


class DraftRelease(BaseModel):
    """Snapshot of a GitHub release as returned by the API."""

    model_config = ConfigDict(frozen=True)

    id: int
    tag_name: str
    name: str | None = None
    body: str | None = None
    draft: bool = True
    prerelease: bool = False
    target_commitish: str | None = None
    created_at: datetime | None = None
    published_at: datetime | None = None


class DesiredRelease(BaseModel):
    """Release content computed for a release stream."""

    model_config = ConfigDict(frozen=True)

    tag_name: str
    name: str
    body: str
    target_commitish: str
