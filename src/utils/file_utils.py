# ============================================================================
# src/utils/file_utils.py
# ============================================================================
"""
File utilities for the MediBill client.
"""

import os
import tempfile
from pathlib import Path
import json


def ensure_directory(path: Path) -> Path:
    """
    Ensure directory exists, create if not.

    Args:
        path: Directory path

    Returns:
        Path to directory
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def read_json(file_path: Path) -> dict:
    """
    Read JSON file.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed JSON data
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(data: dict, file_path: Path, indent: int = 2) -> None:
    """
    Write JSON file atomically.

    The data is written to a temporary file in the same directory and moved
    over the target with os.replace, so readers see either the old or the new
    content, never a partial write.

    Args:
        data: Data to write
        file_path: Path to JSON file
        indent: Indentation level
    """
    ensure_directory(file_path.parent)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{file_path.name}.", suffix=".tmp", dir=file_path.parent
    )
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, file_path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
