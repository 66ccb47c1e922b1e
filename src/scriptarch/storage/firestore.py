"""Firestore store for signed-in users."""

import logging
from typing import Any, List, Optional

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import ValidationError

from ..config import config
from ..errors import PersistenceDeleteFailed, PersistenceReadFailed, PersistenceWriteFailed
from ..models import ScriptAnalysis
from .base import ScriptStore, sort_newest_first

logger = logging.getLogger(__name__)

OWNER_FIELD = "userId"

# Firestore rejects batches larger than this
MAX_BATCH_WRITES = 500

# Failures raised by the client for API calls and credential refreshes
STORE_ERRORS = (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)


class FirestoreScriptStore(ScriptStore):
    """Scripts stored as one document per script, keyed by script id.

    Each document carries an owner field that listing filters on.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        collection: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> None:
        """Initialize the store.

        Args:
            client: ``firestore.Client`` instance. Created if not provided.
            collection: Collection name. Defaults to config.firestore_collection.
            project_id: Google Cloud project. Defaults to GOOGLE_CLOUD_PROJECT.
        """
        if client is None:
            config.validate_remote_required()
            client = firestore.Client(project=project_id or config.google_cloud_project)
            logger.info(f"Initialized Firestore client for project {client.project}")

        self._client = client
        self._collection_name = collection or config.firestore_collection

    @property
    def _collection(self):
        return self._client.collection(self._collection_name)

    def save(self, script: ScriptAnalysis) -> None:
        """Write the full record, replacing any existing document.

        Raises:
            PersistenceWriteFailed: If Firestore rejects the write.
        """
        try:
            self._collection.document(script.id).set(script.to_record())
        except STORE_ERRORS as e:
            logger.error(f"Failed to save {script.id}: {e}")
            raise PersistenceWriteFailed(script.id, str(e)) from e
        logger.debug(f"Saved {script.id} to Firestore")

    def save_many(self, scripts: List[ScriptAnalysis]) -> List[str]:
        """Write scripts in batched commits.

        Args:
            scripts: Scripts to write.

        Returns:
            IDs of the scripts whose batch committed.

        Raises:
            PersistenceWriteFailed: If a batch fails. IDs committed by earlier
                batches are listed in ``details["written"]``.
        """
        written: List[str] = []
        for start in range(0, len(scripts), MAX_BATCH_WRITES):
            chunk = scripts[start:start + MAX_BATCH_WRITES]
            batch = self._client.batch()
            for script in chunk:
                batch.set(self._collection.document(script.id), script.to_record())
            try:
                batch.commit()
            except STORE_ERRORS as e:
                logger.error(f"Batch write of {len(chunk)} scripts failed: {e}")
                error = PersistenceWriteFailed(chunk[0].id, str(e))
                error.details["written"] = list(written)
                raise error from e
            written.extend(s.id for s in chunk)
        return written

    def fetch_all(self, owner_id: str) -> List[ScriptAnalysis]:
        """List an owner's scripts, newest first; errors yield an empty list."""
        try:
            return self.list_for(owner_id)
        except PersistenceReadFailed as e:
            logger.error(f"{e.message}: {e.details.get('reason')}")
            return []

    def list_for(self, owner_id: str) -> List[ScriptAnalysis]:
        """List an owner's scripts, newest first.

        Documents that do not validate are skipped.

        Raises:
            PersistenceReadFailed: If the query fails.
        """
        try:
            snapshots = list(
                self._collection.where(filter=FieldFilter(OWNER_FIELD, "==", owner_id)).stream()
            )
        except STORE_ERRORS as e:
            raise PersistenceReadFailed(owner_id, str(e)) from e

        scripts: List[ScriptAnalysis] = []
        for snapshot in snapshots:
            try:
                scripts.append(ScriptAnalysis.from_record(snapshot.to_dict()))
            except ValidationError as e:
                logger.warning(f"Skipping invalid document {snapshot.id}: {e}")
        return sort_newest_first(scripts)

    def delete(self, script_id: str, owner_id: str) -> None:
        """Delete a script after checking it belongs to ``owner_id``.

        Raises:
            PersistenceDeleteFailed: If the script belongs to someone else or
                Firestore rejects the delete.
        """
        ref = self._collection.document(script_id)
        try:
            snapshot = ref.get()
            if snapshot.exists:
                owner = (snapshot.to_dict() or {}).get(OWNER_FIELD)
                if owner != owner_id:
                    raise PersistenceDeleteFailed(script_id, "Script belongs to another user")
                ref.delete()
        except STORE_ERRORS as e:
            logger.error(f"Failed to delete {script_id}: {e}")
            raise PersistenceDeleteFailed(script_id, str(e)) from e
        logger.debug(f"Deleted {script_id} from Firestore")
