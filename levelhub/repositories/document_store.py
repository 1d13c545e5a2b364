"""Stores for the single JSON document holding every user record."""
import copy
from typing import Any, Dict, Optional

from .base import BaseRepository, StoreError


def empty_document() -> Dict[str, Any]:
    return {'users': {}}


class DocumentStore:
    """Whole-document persistence interface.

    Schema::

        {
          "users": {
            "<roblox_id>": {
              "hearted":  ["<level_id>", ...],
              "queue":    ["<level_id>", ...],
              "profile":  {"name": "...", "avatar": "...", ...},
              "robloxId": "<roblox_id>"
            }
          }
        }

    Implementations never do partial updates: :meth:`load` returns the whole
    document and :meth:`save` overwrites it.
    """

    def load(self) -> Dict[str, Any]:
        raise NotImplementedError

    def save(self, document: Dict[str, Any]) -> None:
        raise NotImplementedError


class JsonFileDocumentStore(BaseRepository, DocumentStore):
    """Keeps the store document in one JSON file on disk.

    A missing file loads as an empty document.  Nothing is cached in memory;
    every :meth:`load` reads the file again.
    """

    def __init__(self, file_path: str = 'data.json') -> None:
        super().__init__(file_path)

    def load(self) -> Dict[str, Any]:
        data = self._load(None)
        if data is None:
            return empty_document()
        if not isinstance(data, dict):
            self._log.error("%s does not hold a JSON object", self._path)
            raise StoreError(f"{self._path} does not hold a JSON object")
        if 'users' not in data:
            data['users'] = {}
        elif not isinstance(data['users'], dict):
            self._log.error("%s has a non-object 'users' entry", self._path)
            raise StoreError(f"{self._path} has a non-object 'users' entry")
        return data

    def save(self, document: Dict[str, Any]) -> None:
        self._save(document)
        self._log.debug("Saved %d user record(s) to %s",
                        len(document.get('users', {})), self._path)


class InMemoryDocumentStore(DocumentStore):
    """Process-local store, mainly for tests.

    Documents are deep-copied in both directions so callers cannot mutate the
    stored state without calling :meth:`save`.
    """

    def __init__(self, document: Optional[Dict[str, Any]] = None) -> None:
        self._document = copy.deepcopy(document) if document else empty_document()
        self.save_count = 0

    def load(self) -> Dict[str, Any]:
        return copy.deepcopy(self._document)

    def save(self, document: Dict[str, Any]) -> None:
        self._document = copy.deepcopy(document)
        self.save_count += 1
