"""
Persisted application state: candidates, interviews, and the current pointers.
"""
import os
import logging
import tempfile
from threading import Lock
from typing import Optional, Protocol

from pydantic import ValidationError

from models.schemas import AppState
from utils.config import config

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    def load(self) -> AppState:
        ...

    def save(self, state: AppState) -> None:
        ...


class InMemoryStore:
    """Keeps a private copy of the state; nothing survives the process."""

    def __init__(self, state: Optional[AppState] = None):
        self._state = state.model_copy(deep=True) if state else AppState()
        self.save_count = 0

    def load(self) -> AppState:
        return self._state.model_copy(deep=True)

    def save(self, state: AppState) -> None:
        self._state = state.model_copy(deep=True)
        self.save_count += 1


class JsonFileStore:
    """
    Single JSON document on disk. Writes go to a temp file in the same
    directory and are swapped in with os.replace.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or config.storage.state_path
        self._lock = Lock()

    def load(self) -> AppState:
        with self._lock:
            if not os.path.exists(self.path):
                logger.info(f"No saved state at {self.path}, starting empty")
                return AppState()
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    return AppState.model_validate_json(f.read())
            except (OSError, ValidationError, ValueError) as e:
                logger.warning(f"Saved state at {self.path} is unreadable, starting empty: {e}")
                return AppState()

    def save(self, state: AppState) -> None:
        with self._lock:
            directory = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".state-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(state.model_dump_json(indent=2))
                os.replace(tmp_path, self.path)
            except OSError:
                logger.error(f"Failed to save state to {self.path}")
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
