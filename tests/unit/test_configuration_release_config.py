"""Unit tests for loading and validating the release notes configuration."""

from pathlib import Path

import pytest

from release_draft_manager.configuration.exceptions import ConfigInvalidError, ConfigNotFoundError
from release_draft_manager.configuration.release_config import (
    ReleaseConfig,
    discover_config_path,
    load_release_config,
    parse_release_config,
    resolve_config_path,
)
from release_draft_manager.utils.constants import DEFAULT_CHANGE_TEMPLATE, DEFAULT_NAME_TEMPLATE, DEFAULT_TEMPLATE
from release_draft_manager.utils.yaml import load_yaml_string

FULL_CONFIG = """
language: rust
tag-template: release-$VERSION
name-template: Widgets $VERSION
categories:
  - title: Features
    labels: [Feature, enhancement, feature]
  - h3: Bug Fixes
    label: bug
exclude-labels: [skip-changelog]
change-template: "- $TITLE ($NUMBER)"
template: |
  ## What's changed

  $CHANGES
"""


def test_parse_full_config() -> None:
    """Test that every key of the configuration document is honored."""
    config = parse_release_config(load_yaml_string(FULL_CONFIG))

    assert config.language == "rust"
    assert config.tag_template == "release-$VERSION"
    assert config.name_template == "Widgets $VERSION"
    assert [category.title for category in config.categories] == ["Features", "Bug Fixes"]
    assert config.categories[0].labels == ("feature", "enhancement")
    assert config.categories[0].heading == "## Features"
    assert config.categories[1].heading == "### Bug Fixes"
    assert config.exclude_labels == ("skip-changelog",)
    assert config.change_template == "- $TITLE ($NUMBER)"
    assert config.template == "## What's changed\n\n$CHANGES"


@pytest.mark.parametrize("document", [pytest.param(None, id="empty document"), pytest.param({}, id="empty mapping")])
def test_parse_defaults(document: object) -> None:
    """Test that missing keys fall back to defaults."""
    config = parse_release_config(document)

    assert config == ReleaseConfig()
    assert config.language is None
    assert config.categories == ()
    assert config.name_template == DEFAULT_NAME_TEMPLATE
    assert config.change_template == DEFAULT_CHANGE_TEMPLATE
    assert config.template == DEFAULT_TEMPLATE


@pytest.mark.parametrize(
    "document,message",
    [
        pytest.param({"categories": [{"labels": ["bug"]}]}, "one of: title, h1, h2, h3", id="no heading"),
        pytest.param({"categories": [{"title": "Fixes", "h2": "Fixes", "label": "bug"}]}, "only one of: title, h1, h2, h3", id="two headings"),
        pytest.param({"categories": [{"title": "Fixes", "label": "bug", "labels": ["fix"]}]}, "only one of: label, labels", id="label and labels"),
        pytest.param({"categories": [{"title": "Fixes"}]}, "at least one label", id="no labels"),
        pytest.param({"categories": [{"title": "Fixes", "labels": []}]}, "at least one label", id="empty labels"),
        pytest.param({"categories": [{"title": "  ", "label": "bug"}]}, "must not be empty", id="blank title"),
        pytest.param({"exclude-labels": [""]}, "must not be empty", id="blank excluded label"),
        pytest.param({"tag_prefix": "v"}, "tag_prefix", id="unknown key"),
        pytest.param({"language": "cobol"}, "cobol", id="unknown language"),
        pytest.param(["not", "a", "mapping"], "mapping", id="top level list"),
    ],
)
def test_parse_invalid_config(document: object, message: str) -> None:
    """Test that invalid documents raise ConfigInvalidError with a helpful message."""
    with pytest.raises(ConfigInvalidError, match=message) as exc_info:
        parse_release_config(document, source="release-drafts.yml")
    assert exc_info.value.kind == "ConfigInvalid"


def test_blank_templates_fall_back_to_defaults() -> None:
    """Test that whitespace-only templates are treated as unset."""
    config = parse_release_config({"template": "  \n", "change-template": "", "tag-template": " "})

    assert config.template == DEFAULT_TEMPLATE
    assert config.change_template == DEFAULT_CHANGE_TEMPLATE
    assert config.tag_template is None


@pytest.mark.parametrize(
    "tag_template,tag_prefix,directory,expected",
    [
        pytest.param(None, "v", "", "v$VERSION", id="default"),
        pytest.param(None, "", "", "$VERSION", id="empty prefix"),
        pytest.param(None, "v", "packages/api", "$DIRECTORY/v$VERSION", id="directory"),
        pytest.param("rel-$VERSION", "v", "packages/api", "rel-$VERSION", id="explicit template"),
    ],
)
def test_resolve_tag_template(tag_template: str | None, tag_prefix: str, directory: str, expected: str) -> None:
    """Test that the tag prefix is composed into the default tag template only."""
    config = ReleaseConfig(tag_template=tag_template)
    assert config.resolve_tag_template(tag_prefix, directory) == expected


def test_load_explicit_config_file(tmp_path: Path) -> None:
    """Test that an explicit path relative to the working directory is loaded."""
    (tmp_path / "notes.yml").write_text("language: nodejs\n", encoding="utf-8")

    config = load_release_config("notes.yml", cwd=tmp_path, home=tmp_path / "home")

    assert config.language == "nodejs"


def test_load_explicit_config_file_missing(tmp_path: Path) -> None:
    """Test that a missing explicit config file raises ConfigNotFoundError."""
    with pytest.raises(ConfigNotFoundError):
        load_release_config(tmp_path / "missing.yml", cwd=tmp_path, home=tmp_path)


def test_load_config_with_invalid_yaml(tmp_path: Path) -> None:
    """Test that malformed YAML is a configuration error."""
    (tmp_path / "notes.yml").write_text("categories: [\n", encoding="utf-8")

    with pytest.raises(ConfigInvalidError, match="Invalid config YAML"):
        load_release_config("notes.yml", cwd=tmp_path, home=tmp_path / "home")


def test_discover_prefers_home_directory(tmp_path: Path) -> None:
    """Test that a config in the home directory wins over the repository's."""
    home = tmp_path / "home"
    repo = tmp_path / "repo"
    (home / ".github").mkdir(parents=True)
    (repo / ".github").mkdir(parents=True)
    (home / ".github" / "release-drafts.yml").write_text("language: dart\n", encoding="utf-8")
    (repo / ".github" / "release-drafts.yaml").write_text("language: rust\n", encoding="utf-8")

    assert discover_config_path(repo, home) == home / ".github" / "release-drafts.yml"
    assert load_release_config(None, cwd=repo, home=home).language == "dart"


def test_discover_falls_back_to_repository(tmp_path: Path) -> None:
    """Test that the repository's .github directory is searched after the home directory."""
    repo = tmp_path / "repo"
    (repo / ".github").mkdir(parents=True)
    (repo / ".github" / "release-drafts.yaml").write_text("language: python\n", encoding="utf-8")

    assert load_release_config(None, cwd=repo, home=tmp_path / "home").language == "python"


def test_no_config_uses_defaults(tmp_path: Path) -> None:
    """Test that defaults are used when no config file exists anywhere."""
    assert load_release_config(None, cwd=tmp_path, home=tmp_path / "home") == ReleaseConfig()


def test_resolve_config_path_expands_home(tmp_path: Path) -> None:
    """Test that a leading ~ expands to the home directory."""
    assert resolve_config_path("~/notes.yml", cwd=Path("/repo"), home=tmp_path) == tmp_path / "notes.yml"
    assert resolve_config_path("/etc/notes.yml", cwd=Path("/repo"), home=tmp_path) == Path("/etc/notes.yml")
