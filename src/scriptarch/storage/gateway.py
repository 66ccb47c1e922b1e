"""Owner-routed persistence gateway."""

import logging
from typing import Callable, List, Optional

from google.auth import exceptions as auth_exceptions

from ..errors import (
    PersistenceDeleteFailed,
    PersistenceError,
    PersistenceReadFailed,
    PersistenceWriteFailed,
)
from ..models import GUEST_USER_ID, ScriptAnalysis
from .base import ScriptStore
from .firestore import FirestoreScriptStore
from .local import LocalScriptStore

logger = logging.getLogger(__name__)

# Raised while building the remote store: missing settings or credentials
REMOTE_SETUP_ERRORS = (ValueError, auth_exceptions.GoogleAuthError)


class PersistenceGateway:
    """Route script operations to the local or remote store by owner.

    The guest sentinel owner goes to the local store; any other owner goes to
    Firestore. The remote store is created on first use so guest mode works
    without Google Cloud configuration.
    """

    def __init__(
        self,
        local: Optional[LocalScriptStore] = None,
        remote: Optional[FirestoreScriptStore] = None,
        remote_factory: Callable[[], FirestoreScriptStore] = FirestoreScriptStore,
    ) -> None:
        """Initialize the gateway.

        Args:
            local: Guest store. Created if not provided.
            remote: Remote store. Created lazily with ``remote_factory`` if not provided.
            remote_factory: Callable building the remote store on demand.
        """
        self._local = local or LocalScriptStore()
        self._remote = remote
        self._remote_factory = remote_factory

    @property
    def local(self) -> LocalScriptStore:
        """Return the guest store."""
        return self._local

    @property
    def remote(self) -> FirestoreScriptStore:
        """Return the remote store, creating it if needed.

        Raises:
            ValueError: If remote store settings are missing.
            google.auth.exceptions.GoogleAuthError: If no credentials are found.
        """
        if self._remote is None:
            self._remote = self._remote_factory()
        return self._remote

    def store_for(self, owner_id: str) -> ScriptStore:
        """Return the store responsible for ``owner_id``."""
        return self._local if owner_id == GUEST_USER_ID else self.remote

    def save(self, script: ScriptAnalysis) -> None:
        """Upsert a script into its owner's store.

        Raises:
            PersistenceWriteFailed: If the store cannot be reached or rejects the write.
        """
        try:
            store = self.store_for(script.user_id)
        except REMOTE_SETUP_ERRORS as e:
            raise PersistenceWriteFailed(script.id, f"Remote store unavailable: {e}") from e
        store.save(script)

    def fetch_all(
        self,
        owner_id: str,
        on_error: Optional[Callable[[PersistenceError], None]] = None,
    ) -> List[ScriptAnalysis]:
        """Return an owner's scripts, newest first.

        Never raises for remote problems: an unreachable or failing remote
        store yields an empty list and ``on_error`` is called with the cause.
        """
        if owner_id == GUEST_USER_ID:
            return self._local.fetch_all(owner_id)

        try:
            return self.remote.list_for(owner_id)
        except REMOTE_SETUP_ERRORS as e:
            error = PersistenceReadFailed(owner_id, f"Remote store unavailable: {e}")
        except PersistenceReadFailed as e:
            error = e

        logger.error(f"{error.message}: {error.details.get('reason')}")
        if on_error is not None:
            on_error(error)
        return []

    def delete(self, script_id: str, owner_id: str) -> None:
        """Delete a script from its owner's store.

        Raises:
            PersistenceDeleteFailed: If the store cannot be reached or rejects the delete.
        """
        try:
            store = self.store_for(owner_id)
        except REMOTE_SETUP_ERRORS as e:
            raise PersistenceDeleteFailed(script_id, f"Remote store unavailable: {e}") from e
        store.delete(script_id, owner_id)

    def migrate_guest_to_user(self, user_id: str) -> int:
        """Move every guest script to ``user_id`` in the remote store.

        Args:
            user_id: Real signed-in user ID.

        Returns:
            Number of scripts migrated. Zero if there were no guest scripts.

        Raises:
            ValueError: If ``user_id`` is the guest sentinel.
            PersistenceWriteFailed: If the remote store is unavailable or a
                batch write fails. Scripts written by earlier batches are
                already removed from the guest store.
        """
        if user_id == GUEST_USER_ID:
            raise ValueError("Cannot migrate guest scripts to the guest owner")

        all_local = self._local.load_all()
        guest_scripts = [s.with_owner(user_id) for s in all_local if s.user_id == GUEST_USER_ID]
        if not guest_scripts:
            return 0

        logger.info(f"Migrating {len(guest_scripts)} guest scripts to {user_id}")
        try:
            remote = self.remote
        except REMOTE_SETUP_ERRORS as e:
            error = PersistenceWriteFailed(guest_scripts[0].id, f"Remote store unavailable: {e}")
            error.details["written"] = []
            raise error from e

        try:
            written = remote.save_many(guest_scripts)
        except PersistenceWriteFailed as e:
            written = e.details.get("written", [])
            if written:
                self._forget_local(written)
            raise

        if len(written) == len(all_local):
            self._local.clear()
        else:
            self._forget_local(written)

        logger.info(f"Migrated {len(written)} scripts")
        return len(written)

    def _forget_local(self, script_ids: List[str]) -> None:
        """Remove migrated guest scripts from the local store."""
        for script_id in script_ids:
            self._local.delete(script_id, GUEST_USER_ID)
