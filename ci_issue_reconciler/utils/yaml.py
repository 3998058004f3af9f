"""Contains utility functions for working with YAML files."""

import os
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

yaml = YAML(typ="safe")


def load_yaml_file(path: Path) -> Any:
    """Loads a YAML file and returns its content, or None for an empty file."""
    with open(path, encoding="utf-8") as f:
        return yaml.load(f)


def create_record_dumper() -> YAML:
    """Creates a YAML object that writes small block-style records with a document start marker."""
    record_dumper = YAML()
    record_dumper.default_flow_style = False
    record_dumper.explicit_start = True
    return record_dumper


def write_yaml_atomically(data: Any, file_path: Path) -> None:
    """Write ``data`` to ``file_path`` so readers only ever see the old or the new content.

    The document goes to a sibling temporary file, is flushed to disk, and then
    renamed over the target.
    """
    temp_path = file_path.with_name(file_path.name + ".tmp")
    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            create_record_dumper().dump(data, f)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, file_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
