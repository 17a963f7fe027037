"""Unit tests for the release key marker and the managed region of draft bodies."""

import pytest

from release_draft_manager.release_notes.markers import (
    ManagedRegionError,
    body_matches_key,
    build_body,
    escape_comment_markers,
    extract_release_keys,
    release_marker,
)
from release_draft_manager.release_notes.models import ReleaseKey
from release_draft_manager.utils.constants import MANAGED_REGION_BEGIN, MANAGED_REGION_END

MAIN = ReleaseKey(branch="main")
API = ReleaseKey(branch="main", directory="packages/api")


def test_release_marker_quotes_values() -> None:
    """Test that branch and directory are percent-quoted into the marker."""
    key = ReleaseKey(branch="release/1.x", directory="packages/my api")

    assert release_marker(key) == "<!-- release-draft-manager:key branch=release%2F1.x directory=packages%2Fmy%20api -->"
    assert extract_release_keys(f"intro\n{release_marker(key)}\nmore") == [key]


def test_body_matches_only_its_own_key() -> None:
    """Test that streams on the same branch with different directories do not match each other."""
    body = build_body(API, "- A")

    assert body_matches_key(body, API)
    assert not body_matches_key(body, MAIN)
    assert not body_matches_key(None, MAIN)
    assert not body_matches_key("Release notes without marker", MAIN)


@pytest.mark.parametrize(
    "directory",
    [pytest.param("./packages/api/", id="dot slash and trailing slash"), pytest.param("packages\\api", id="backslashes")],
)
def test_release_key_normalizes_directory(directory: str) -> None:
    """Test that equivalent directory spellings produce the same key."""
    assert ReleaseKey(branch="main", directory=directory) == API


def test_build_new_body() -> None:
    """Test the body of a newly created draft."""
    assert build_body(MAIN, "- A") == f"{release_marker(MAIN)}\n{MANAGED_REGION_BEGIN}\n- A\n{MANAGED_REGION_END}"


def test_build_body_preserves_text_outside_region() -> None:
    """Test that hand-written text before and after the managed region survives."""
    current = f"{release_marker(MAIN)}\nHighlights written by hand\n{MANAGED_REGION_BEGIN}\n- old\n{MANAGED_REGION_END}\n\nThanks to all contributors!"

    body = build_body(MAIN, "- new", current)

    assert body == f"{release_marker(MAIN)}\nHighlights written by hand\n{MANAGED_REGION_BEGIN}\n- new\n{MANAGED_REGION_END}\n\nThanks to all contributors!"


def test_build_body_is_stable() -> None:
    """Test that rebuilding a body with the same content changes nothing."""
    first = build_body(MAIN, "- A")

    assert build_body(MAIN, "- A", first) == first


def test_build_body_normalizes_windows_line_endings() -> None:
    """Test that CRLF bodies returned by the API compare equal after rebuilding."""
    first = build_body(MAIN, "- A")

    assert build_body(MAIN, "- A", first.replace("\n", "\r\n")) == first


def test_build_body_adopts_body_without_region() -> None:
    """Test that text of a body without a managed region follows the new region."""
    current = f"{release_marker(MAIN)}\nSome notes"

    assert build_body(MAIN, "- A", current) == f"{release_marker(MAIN)}\n{MANAGED_REGION_BEGIN}\n- A\n{MANAGED_REGION_END}\n\nSome notes"


def test_build_body_restores_missing_marker() -> None:
    """Test that the key marker is put back when someone removed it."""
    current = f"{MANAGED_REGION_BEGIN}\n- old\n{MANAGED_REGION_END}"

    assert build_body(MAIN, "- A", current) == f"{release_marker(MAIN)}\n{MANAGED_REGION_BEGIN}\n- A\n{MANAGED_REGION_END}"


@pytest.mark.parametrize(
    "current",
    [
        pytest.param(f"{MANAGED_REGION_BEGIN}\n- old", id="begin without end"),
        pytest.param(f"- old\n{MANAGED_REGION_END}", id="end without begin"),
        pytest.param(f"{MANAGED_REGION_BEGIN}\n{MANAGED_REGION_BEGIN}\n{MANAGED_REGION_END}", id="two begins"),
        pytest.param(f"{MANAGED_REGION_END}\n- old\n{MANAGED_REGION_BEGIN}", id="end before begin"),
    ],
)
def test_build_body_rejects_invalid_region(current: str) -> None:
    """Test that unbalanced region markers raise ManagedRegionError."""
    with pytest.raises(ManagedRegionError) as exc_info:
        build_body(MAIN, "- A", current)
    assert exc_info.value.kind == "ManagedRegionInvalid"


def test_markers_inside_managed_region_are_ignored() -> None:
    """Test that a key marker rendered into the release notes does not claim the draft for another stream."""
    develop = ReleaseKey(branch="develop")
    body = f"{release_marker(MAIN)}\n{MANAGED_REGION_BEGIN}\n* {release_marker(develop)} (#9)\n{MANAGED_REGION_END}"

    assert extract_release_keys(body) == [MAIN]
    assert not body_matches_key(body, develop)


def test_escape_comment_markers() -> None:
    """Test that HTML comment openers in rendered values can no longer form markers."""
    escaped = escape_comment_markers(f"Fix {MANAGED_REGION_END} and {release_marker(API)}")

    assert MANAGED_REGION_END not in escaped
    assert extract_release_keys(escaped) == []
    assert escaped.startswith("Fix &lt;!-- release-draft-manager:end -->")
