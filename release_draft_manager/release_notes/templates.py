"""Variable substitution for release notes templates.

Templates use ``$NAME`` placeholders drawn from a fixed set per template kind.
Substitution is a single left-to-right pass: placeholders outside the set are
kept verbatim, and substituted values are never scanned again, so pull request
titles and author names can safely contain ``$`` sequences.
"""

import re
from typing import Mapping

from release_draft_manager.utils.constants import (
    BODY_TEMPLATE_VARIABLES,
    CHANGE_TEMPLATE_VARIABLES,
    NAME_TEMPLATE_VARIABLES,
    TAG_TEMPLATE_VARIABLES,
    TEMPLATE_VARIABLE_PATTERN,
)

from .classifier import CategoryBucket
from .markers import escape_comment_markers
from .models import ChangeRequest


def substitute(template: str, values: Mapping[str, str]) -> str:
    """Replace ``$NAME`` placeholders whose name is a key of ``values``.

    A name is upper-case words joined by single underscores, so an underscore
    directly before another ``$`` ends it and ``$DIRECTORY_$VERSION`` renders
    both variables. Unknown names, such as ``$VERSIONS``, stay verbatim.
    """

    def replace(match: re.Match[str]) -> str:
        return values.get(match.group(1), match.group(0))

    return TEMPLATE_VARIABLE_PATTERN.sub(replace, template)


def _only(values: Mapping[str, str], allowed: frozenset[str]) -> dict[str, str]:
    return {name: value for name, value in values.items() if name in allowed}


def render_change(template: str, change_request: ChangeRequest) -> str:
    """Render one pull request line with ``$TITLE``, ``$AUTHOR``, ``$NUMBER`` and ``$URL``."""
    values = {
        "TITLE": escape_comment_markers(change_request.title),
        "AUTHOR": escape_comment_markers(change_request.author),
        "NUMBER": str(change_request.number),
        "URL": escape_comment_markers(change_request.url),
    }
    return substitute(template, _only(values, CHANGE_TEMPLATE_VARIABLES))


def render_sections(buckets: tuple[CategoryBucket, ...], change_template: str) -> str:
    """Render non-empty buckets as heading plus item list, separated by blank lines."""
    sections: list[str] = []
    for bucket in buckets:
        if not bucket.change_requests:
            continue
        items = "\n".join(render_change(change_template, change_request) for change_request in bucket.change_requests)
        if bucket.category is None:
            sections.append(items)
        else:
            sections.append(f"{bucket.category.heading}\n\n{items}")
    return "\n\n".join(sections)


def render_body(template: str, changes: str, version: str, directory: str, branch: str) -> str:
    """Render the top-level template with ``$CHANGES``, ``$VERSION``, ``$DIRECTORY`` and ``$BRANCH``."""
    values = {
        "CHANGES": changes,
        "VERSION": escape_comment_markers(version),
        "DIRECTORY": escape_comment_markers(directory),
        "BRANCH": escape_comment_markers(branch),
    }
    return substitute(template, _only(values, BODY_TEMPLATE_VARIABLES))


def render_tag(template: str, version: str, directory: str, branch: str) -> str:
    """Render the tag template."""
    values = {"VERSION": version, "DIRECTORY": directory, "BRANCH": branch}
    return substitute(template, _only(values, TAG_TEMPLATE_VARIABLES)).strip()


def render_name(template: str, version: str, directory: str, branch: str, tag: str) -> str:
    """Render the release name template; ``$TAG`` refers to the rendered tag."""
    values = {"VERSION": version, "DIRECTORY": directory, "BRANCH": branch, "TAG": tag}
    return substitute(template, _only(values, NAME_TEMPLATE_VARIABLES)).strip()
