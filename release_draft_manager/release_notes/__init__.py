"""Release notes generation module."""

from .classifier import CategoryBucket, classify_change_requests
from .markers import ManagedRegionError, body_matches_key, build_body, release_marker
from .models import ChangeRequest, DesiredRelease, DraftRelease, ReleaseKey
from .templates import render_body, render_change, render_name, render_sections, render_tag

__all__ = [
    "CategoryBucket",
    "ChangeRequest",
    "DesiredRelease",
    "DraftRelease",
    "ManagedRegionError",
    "ReleaseKey",
    "body_matches_key",
    "build_body",
    "classify_change_requests",
    "release_marker",
    "render_body",
    "render_change",
    "render_name",
    "render_sections",
    "render_tag",
]
