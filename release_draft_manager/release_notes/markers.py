"""Embeds the release stream key and the managed region into draft release bodies.

A draft body written by this application looks like::

    <!-- release-draft-manager:key branch=main directory=packages%2Fapi -->
    <!-- release-draft-manager:begin -->
    ...rendered release notes...
    <!-- release-draft-manager:end -->

The key marker lets a later run find the draft without local state. Anything
outside the begin/end markers belongs to whoever edited the draft by hand and
is carried over unchanged.
"""

from urllib.parse import quote, unquote

import structlog

from release_draft_manager.exceptions import DraftReleaseError
from release_draft_manager.utils.constants import (
    MANAGED_REGION_BEGIN,
    MANAGED_REGION_END,
    MARKER_NAMESPACE,
    RELEASE_KEY_MARKER_PATTERN,
)

from .models import ReleaseKey

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class ManagedRegionError(DraftReleaseError):
    """Raised when a draft body has unbalanced or duplicated managed region markers."""

    kind = "ManagedRegionInvalid"


def release_marker(key: ReleaseKey) -> str:
    """Build the HTML comment identifying a release stream."""
    branch = quote(key.branch, safe="")
    directory = quote(key.directory, safe="")
    return f"<!-- {MARKER_NAMESPACE}:key branch={branch} directory={directory} -->"


def escape_comment_markers(text: str) -> str:
    """Neutralize HTML comment openers so rendered values cannot form key or region markers."""
    return text.replace("<!--", "&lt;!--")


def outside_managed_region(body: str) -> str:
    """Text of a body with everything from the first begin marker to the last end marker removed."""
    begin = body.find(MANAGED_REGION_BEGIN)
    end = body.rfind(MANAGED_REGION_END)
    if begin == -1 or end < begin:
        return body
    return body[:begin] + body[end + len(MANAGED_REGION_END) :]


def extract_release_keys(body: str | None) -> list[ReleaseKey]:
    """Return every release key embedded in a release body outside its managed region.

    The managed region holds pull request titles, so markers inside it never identify a stream.
    """
    if not body:
        return []
    keys: list[ReleaseKey] = []
    for match in RELEASE_KEY_MARKER_PATTERN.finditer(outside_managed_region(body)):
        branch = unquote(match.group("branch"))
        if not branch:
            continue
        keys.append(ReleaseKey(branch=branch, directory=unquote(match.group("directory"))))
    return keys


def body_matches_key(body: str | None, key: ReleaseKey) -> bool:
    """Whether a release body carries the marker of exactly this release stream."""
    return key in extract_release_keys(body)


def wrap_managed_region(content: str) -> str:
    """Surround rendered release notes with the managed region markers."""
    return f"{MANAGED_REGION_BEGIN}\n{content}\n{MANAGED_REGION_END}"


def build_body(key: ReleaseKey, content: str, current_body: str | None = None) -> str:
    """Compose the draft body for a stream, preserving text outside the managed region.

    Without a current body, the result is the key marker followed by the managed
    region. With a current body, only the managed region is replaced. If the
    current body has no managed region yet, its text (without the key marker)
    follows the new region.

    Raises:
        ManagedRegionError: The current body has a begin marker without an end
            marker (or the reverse), more than one of either, or the end before the begin.
    """
    marker = release_marker(key)
    region = wrap_managed_region(content)
    if current_body is None:
        return f"{marker}\n{region}"

    body = current_body.replace("\r\n", "\n")
    begin_count = body.count(MANAGED_REGION_BEGIN)
    end_count = body.count(MANAGED_REGION_END)

    if begin_count == 0 and end_count == 0:
        remainder = body.replace(marker, "", 1).strip("\n")
        logger.info("Draft body has no managed region, keeping its text after the generated notes", release_key=str(key))
        if remainder:
            return f"{marker}\n{region}\n\n{remainder}"
        return f"{marker}\n{region}"

    if begin_count != 1 or end_count != 1:
        raise ManagedRegionError(
            f"Draft body for {key} must contain exactly one '{MANAGED_REGION_BEGIN}' and one '{MANAGED_REGION_END}' "
            f"marker, found {begin_count} and {end_count}"
        )

    begin = body.index(MANAGED_REGION_BEGIN)
    end = body.index(MANAGED_REGION_END)
    if end < begin:
        raise ManagedRegionError(f"Draft body for {key} has '{MANAGED_REGION_END}' before '{MANAGED_REGION_BEGIN}'")

    before = body[:begin]
    after = body[end + len(MANAGED_REGION_END) :]
    if marker not in before and marker not in after:
        before = f"{marker}\n{before}"
    return f"{before}{region}{after}"
