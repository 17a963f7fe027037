"""Contains utility functions for working with YAML files."""

from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

yaml = YAML(typ="safe")


def load_yaml_file(path: Path) -> Any:
    """Loads a YAML file and returns the parsed document."""
    with open(path, encoding="utf-8") as f:
        return yaml.load(f)


def load_yaml_string(content: str) -> Any:
    """Parses a YAML document held in a string."""
    return yaml.load(content)
