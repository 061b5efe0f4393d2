"""Saved pay calculations.

Entries are stored newest first in pay_history.json. An entry is a frozen
snapshot of the rates and hours used at save time; later rule changes
never touch it.
"""

import logging
from pathlib import Path
from typing import List, Optional, Protocol

from pydantic import ValidationError

from .config import get_data_path
from .schemas import PayCalculationEntry
from .storage import PersistenceError, read_json, write_json

logger = logging.getLogger(__name__)

HISTORY_FILENAME = "pay_history.json"


class HistoryStore(Protocol):
    def get_pay_history(self) -> List[PayCalculationEntry]: ...

    def save_pay_calculation(self, entry: PayCalculationEntry) -> PayCalculationEntry: ...


class JsonHistoryStore:
    """Pay history in pay_history.json under the data directory."""

    def __init__(self, data_dir: Optional[Path] = None):
        self._data_dir = data_dir

    @property
    def path(self) -> Path:
        return (self._data_dir or get_data_path()) / HISTORY_FILENAME

    def _load(self) -> list:
        data = read_json(self.path, default=[])
        if not isinstance(data, list):
            raise PersistenceError(self.path, "expected a list of entries")
        return data

    def get_pay_history(self) -> List[PayCalculationEntry]:
        """All saved calculations, newest first.

        Raises:
            PersistenceError: If the file is unreadable or malformed
        """
        try:
            return [PayCalculationEntry.model_validate(e) for e in self._load()]
        except ValidationError as e:
            raise PersistenceError(self.path, f"invalid history entry: {e}") from e

    def save_pay_calculation(self, entry: PayCalculationEntry) -> PayCalculationEntry:
        entries = self._load()
        entries.insert(0, entry.model_dump(mode="json"))
        write_json(self.path, entries)
        logger.info(f"saved pay calculation {entry.id} for {entry.input.date}")
        return entry

    def delete_pay_calculation(self, entry_id: str) -> bool:
        """Delete a saved calculation. Returns False if the id is unknown."""
        entries = self._load()
        remaining = [e for e in entries if e.get("id") != entry_id]
        if len(remaining) == len(entries):
            return False
        write_json(self.path, remaining)
        return True
