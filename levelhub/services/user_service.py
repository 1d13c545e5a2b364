"""Business logic for per-user records: hearts, queue and profile."""
import logging
import threading
from typing import Any, Callable, Dict, Tuple

from ..repositories.base import StoreError
from ..repositories.document_store import DocumentStore

logger = logging.getLogger(__name__)

AVATAR_URL = (
    "https://www.roblox.com/headshot-thumbnail/image"
    "?userId={user_id}&width=150&height=150&format=png"
)


def default_record(identity: Dict[str, str]) -> Dict[str, Any]:
    """Build the record a user gets on their first authenticated request."""
    user_id = str(identity['roblox_id'])
    return {
        'hearted': [],
        'queue': [],
        'profile': {
            'name': identity.get('username', ''),
            'avatar': AVATAR_URL.format(user_id=user_id),
        },
        'robloxId': user_id,
    }


class UserService:
    """Reads and mutates user records, delegating persistence to a
    :class:`~levelhub.repositories.document_store.DocumentStore`.

    Every operation is a whole-document load → get-or-create → mutate → save.
    The sequence runs under one lock so two requests in this process cannot
    interleave and overwrite each other's changes.  Nothing is saved when an
    operation turns out to be a no-op.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _ensure(document: Dict[str, Any], identity: Dict[str, str]) -> Tuple[Dict[str, Any], bool]:
        users = document.setdefault('users', {})
        user_id = str(identity['roblox_id'])
        record = users.get(user_id)
        if record is not None:
            if not isinstance(record, dict):
                logger.error("User record %s is not an object", user_id)
                raise StoreError(f"User record {user_id} is not an object")
            # Older files may predate one of the lists, or hold null for it.
            for key in ('hearted', 'queue'):
                if record.get(key) is None:
                    record[key] = []
                elif not isinstance(record[key], list):
                    logger.error("User record %s has a non-list %r", user_id, key)
                    raise StoreError(f"User record {user_id} has a non-list {key!r}")
            record.setdefault('profile', {})
            record.setdefault('robloxId', user_id)
            return record, False
        record = default_record(identity)
        users[user_id] = record
        logger.info("Created user record for %s", user_id)
        return record, True

    def _mutate(self, identity: Dict[str, str],
                change: Callable[[Dict[str, Any]], bool]) -> Tuple[Dict[str, Any], bool]:
        """Apply *change* to the caller's record and save when anything changed.

        *change* returns ``True`` when it modified the record.
        """
        with self._lock:
            document = self._store.load()
            record, created = self._ensure(document, identity)
            changed = change(record)
            if created or changed:
                self._store.save(document)
            return record, changed

    @staticmethod
    def _add_to(key: str, level_id: str) -> Callable[[Dict[str, Any]], bool]:
        def change(record: Dict[str, Any]) -> bool:
            if level_id in record[key]:
                return False
            record[key].append(level_id)
            return True
        return change

    @staticmethod
    def _remove_from(key: str, level_id: str) -> Callable[[Dict[str, Any]], bool]:
        def change(record: Dict[str, Any]) -> bool:
            if level_id not in record[key]:
                return False
            record[key] = [x for x in record[key] if x != level_id]
            return True
        return change

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_or_create(self, identity: Dict[str, str]) -> Dict[str, Any]:
        """Return the caller's record, creating the default one if missing."""
        record, _ = self._mutate(identity, lambda _record: False)
        return record

    def heart(self, identity: Dict[str, str], level_id: str) -> bool:
        """Add *level_id* to the hearted set.

        Returns:
            ``True`` if added; ``False`` if it was already hearted.
        """
        return self._mutate(identity, self._add_to('hearted', str(level_id)))[1]

    def unheart(self, identity: Dict[str, str], level_id: str) -> bool:
        """Remove *level_id* from the hearted set.  Returns ``True`` if it was present."""
        return self._mutate(identity, self._remove_from('hearted', str(level_id)))[1]

    def enqueue(self, identity: Dict[str, str], level_id: str) -> bool:
        """Add *level_id* to the play queue.

        Returns:
            ``True`` if added; ``False`` if it was already queued.
        """
        return self._mutate(identity, self._add_to('queue', str(level_id)))[1]

    def dequeue(self, identity: Dict[str, str], level_id: str) -> bool:
        """Remove *level_id* from the play queue.  Returns ``True`` if it was present."""
        return self._mutate(identity, self._remove_from('queue', str(level_id)))[1]

    def update_profile(self, identity: Dict[str, str], profile: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the caller's whole profile with *profile*.

        Fields missing from *profile* are dropped; nothing is merged.

        Raises:
            ValueError: *profile* is not a dict.
        """
        if not isinstance(profile, dict):
            raise ValueError("profile must be a JSON object")

        def change(record: Dict[str, Any]) -> bool:
            record['profile'] = dict(profile)
            return True

        record, _ = self._mutate(identity, change)
        return record
