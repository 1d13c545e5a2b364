"""Repository base classes shared by the store implementations."""
import json
import logging
import os
import tempfile
from typing import Any


class StoreError(Exception):
    """Raised when the store document cannot be read or written."""


class BaseRepository:
    """Provides JSON-backed persistence for a single data file.

    Sub-classes call :meth:`_load` to read the file and :meth:`_save` to
    atomically persist data back.

    The atomic write uses a write-then-rename strategy so the file is never
    left in a partially-written state.
    """

    def __init__(self, file_path: str) -> None:
        self._path = file_path
        self._log = logging.getLogger(f'levelhub.repository.{type(self).__name__}')

    @property
    def path(self) -> str:
        return self._path

    def _load(self, default: Any) -> Any:
        """Load JSON from *self._path*, returning *default* when the file is missing.

        Raises:
            StoreError: The file exists but is unreadable or not valid JSON.
        """
        if not os.path.exists(self._path):
            return default
        try:
            with open(self._path, 'r', encoding='utf-8') as fh:
                return json.load(fh)
        except (ValueError, OSError) as exc:
            self._log.error("Could not load %s: %s", self._path, exc)
            raise StoreError(f"Could not load {self._path}") from exc

    def _save(self, data: Any) -> None:
        """Atomically write *data* as JSON to *self._path*."""
        dir_name = os.path.dirname(os.path.abspath(self._path))
        try:
            os.makedirs(dir_name, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix='.tmp')
        except OSError as exc:
            self._log.error("Could not prepare write to %s: %s", self._path, exc)
            raise StoreError(f"Could not write {self._path}") from exc
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self._path)
        except (OSError, TypeError, ValueError) as exc:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            self._log.error("Could not write %s: %s", self._path, exc)
            raise StoreError(f"Could not write {self._path}") from exc
