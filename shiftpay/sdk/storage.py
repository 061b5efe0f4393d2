"""JSON file persistence shared by the timer, shift and pay history stores.

Writes go through a temporary file and an atomic rename so a failed write
never leaves a half-written file behind.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when a store read or write fails."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


def read_json(path: Path, default: Any = None) -> Any:
    """Read a JSON document, returning default if the file doesn't exist.

    Raises:
        PersistenceError: If the file exists but can't be read or parsed
    """
    if not path.exists():
        return default
    try:
        with open(path, "r") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise PersistenceError(path, f"read failed: {e}") from e


def write_json(path: Path, data: Any) -> Path:
    """Atomically write a JSON document.

    Raises:
        PersistenceError: If the file can't be written
    """
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, path)
    except (OSError, TypeError) as e:
        tmp_path.unlink(missing_ok=True)
        raise PersistenceError(path, f"write failed: {e}") from e
    logger.debug(f"wrote {path.name}")
    return path


def remove_file(path: Path) -> None:
    """Delete a file if present.

    Raises:
        PersistenceError: If the file exists but can't be removed
    """
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        raise PersistenceError(path, f"delete failed: {e}") from e
