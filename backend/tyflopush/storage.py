"""State file storage.

The whole service state lives in one JSON document. Every operation reloads
it, mutates the loaded copy and saves it back:

    state = await store.load()
    ...
    await store.save(state)

Saves go through a temporary file in the same directory followed by an
atomic rename, so readers never see a partial document and a crash mid-write
leaves the previous version in place. There is no lock: concurrent writers
are last-write-wins.
"""
import asyncio
import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from .exceptions import PersistenceError
from .models.state import PersistedState
from .utils.push_utils import utcnow

logger = logging.getLogger(__name__)

FILE_MODE = 0o640
DIR_MODE = 0o750


class StateStore:
    """Loads and saves the persisted state document."""

    def __init__(self, path: str):
        self.path = Path(path)

    async def ensure_directory(self):
        """Create the state directory (and parents) if it does not exist."""
        await asyncio.to_thread(self._ensure_directory_sync)

    async def load(self) -> PersistedState:
        """Load the state, or a fresh default document if it can't be read."""
        return await asyncio.to_thread(self._load_sync)

    async def save(self, state: PersistedState):
        """Stamp ``updatedAt`` and atomically replace the state file.

        Raises:
            PersistenceError: If the directory or file can't be written
        """
        state.updated_at = utcnow()
        payload = json.dumps(state.to_document(), indent=2, ensure_ascii=False) + "\n"
        try:
            await asyncio.to_thread(self._write_sync, payload)
        except OSError as e:
            logger.error(f"Failed to save state to {self.path}: {e}")
            raise PersistenceError(f"Failed to save state: {e}") from e

    def _ensure_directory_sync(self):
        self.path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)

    def _load_sync(self) -> PersistedState:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return PersistedState.default()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read state file {self.path}, starting clean: {e}")
            return PersistedState.default()

        try:
            document = json.loads(raw)
        except ValueError as e:
            logger.warning(f"State file {self.path} is not valid JSON, starting clean: {e}")
            return PersistedState.default()

        if not isinstance(document, dict):
            logger.warning(f"State file {self.path} is not a JSON object, starting clean")
            return PersistedState.default()

        try:
            return PersistedState.model_validate(document)
        except PydanticValidationError as e:
            logger.warning(f"State file {self.path} does not match the schema, starting clean: {e}")
            return PersistedState.default()

    def _write_sync(self, payload: str):
        # Unique temp name per save, so concurrent saves never share a file
        fd, tmp = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            os.fchmod(fd, FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp)
            raise
