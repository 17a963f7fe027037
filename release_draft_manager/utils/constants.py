"""Shared constants used across the application."""

import re

# Release Notes Configuration
# ---------------------------

CONFIG_FILE_NAMES = ("release-drafts.yml", "release-drafts.yaml")
"""Configuration file names looked up under ``.github/`` in the home directory and the repository."""

DEFAULT_TAG_PREFIX = "v"
"""Prefix composed into the default tag template."""

DEFAULT_CATEGORY_HEADING_LEVEL = 2
"""Heading level used for categories declared with ``title``."""

DEFAULT_CHANGE_TEMPLATE = "* $TITLE (#$NUMBER) @$AUTHOR"
"""Default per pull request line."""

DEFAULT_NAME_TEMPLATE = "$TAG ($BRANCH)"
"""Default release name."""

DEFAULT_TEMPLATE = "$CHANGES"
"""Default top-level body template."""

# Template Variables
# ------------------

TEMPLATE_VARIABLE_PATTERN = re.compile(r"\$([A-Z]+(?:_[A-Z]+)*)")
"""Pattern matching ``$NAME`` placeholders: upper-case words joined by single underscores. A trailing underscore is literal text."""

CHANGE_TEMPLATE_VARIABLES = frozenset({"TITLE", "AUTHOR", "NUMBER", "URL"})
BODY_TEMPLATE_VARIABLES = frozenset({"CHANGES", "VERSION", "DIRECTORY", "BRANCH"})
TAG_TEMPLATE_VARIABLES = frozenset({"VERSION", "DIRECTORY", "BRANCH"})
NAME_TEMPLATE_VARIABLES = frozenset({"VERSION", "DIRECTORY", "BRANCH", "TAG"})

# Draft Body Markers
# ------------------

MARKER_NAMESPACE = "release-draft-manager"
"""Namespace of the HTML comments embedded in draft bodies."""

RELEASE_KEY_MARKER_PATTERN = re.compile(rf"<!-- {MARKER_NAMESPACE}:key branch=(?P<branch>\S*) directory=(?P<directory>\S*) -->")
"""Pattern to match the release key marker identifying the stream a draft belongs to."""

MANAGED_REGION_BEGIN = f"<!-- {MARKER_NAMESPACE}:begin -->"
MANAGED_REGION_END = f"<!-- {MARKER_NAMESPACE}:end -->"

# GitHub API
# ----------

GITHUB_MAX_PER_PAGE = 100
"""Largest page size accepted by the GitHub REST API."""

DEFAULT_REQUEST_TIMEOUT = 30.0
"""Seconds before a single GitHub API request is abandoned."""

DEFAULT_MAX_ATTEMPTS = 3
"""Attempts made for a GitHub API call failing with transient errors."""
