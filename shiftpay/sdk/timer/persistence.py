"""Timer persistence.

The running timer is stored as absolute timestamps (started_at and each
break's start/end), never as durations, so elapsed time can always be
recomputed from the wall clock after a restart.
"""

import logging
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from ..config import get_data_path
from ..schemas import TimerSession
from ..storage import PersistenceError, read_json, remove_file, write_json

logger = logging.getLogger(__name__)

TIMER_FILENAME = "running_timer.json"


class TimerPersistence(Protocol):
    """Storage contract for the single active timer session."""

    def get_running_timer(self) -> Optional[TimerSession]: ...

    def save_running_timer(self, session: TimerSession) -> None: ...

    def clear_running_timer(self) -> None: ...


class JsonTimerStore:
    """Active timer session in running_timer.json under the data directory."""

    def __init__(self, data_dir: Optional[Path] = None):
        self._data_dir = data_dir

    @property
    def path(self) -> Path:
        return (self._data_dir or get_data_path()) / TIMER_FILENAME

    def get_running_timer(self) -> Optional[TimerSession]:
        """Load the active session, or None when idle.

        Raises:
            PersistenceError: If the file is unreadable or malformed
        """
        data = read_json(self.path)
        if data is None:
            return None
        try:
            return TimerSession.model_validate(data)
        except ValidationError as e:
            raise PersistenceError(self.path, f"invalid timer record: {e}") from e

    def save_running_timer(self, session: TimerSession) -> None:
        write_json(self.path, session.model_dump(mode="json"))
        logger.debug(f"timer {session.id} saved ({session.status}, {len(session.breaks)} break(s))")

    def clear_running_timer(self) -> None:
        remove_file(self.path)
