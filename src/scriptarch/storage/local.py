"""Local YAML store used in guest mode."""

import logging
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import ValidationError

from ..config import config
from ..errors import PersistenceDeleteFailed, PersistenceWriteFailed
from ..models import ScriptAnalysis
from .base import ScriptStore, sort_newest_first

logger = logging.getLogger(__name__)

GUEST_STORE_FILENAME = "guest_scripts.yaml"


class LocalStoreUnreadable(Exception):
    """The backing file exists but does not hold a list of records."""


class LocalScriptStore(ScriptStore):
    """Scripts kept in a single YAML file on this machine.

    Listing never fails: a missing or unreadable file lists as empty. Writes
    re-read the file strictly and refuse to touch a file they cannot parse,
    so a damaged store is never overwritten. Records that fail validation
    are skipped when listing but kept verbatim on every write.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        """Initialize the store.

        Args:
            path: YAML file to use. Defaults to the guest store in config.data_dir.
        """
        self._path = path or (config.data_dir / GUEST_STORE_FILENAME)

    @property
    def path(self) -> Path:
        """Return the backing file path."""
        return self._path

    def load_all(self) -> List[ScriptAnalysis]:
        """Return every valid stored script regardless of owner, in file order."""
        try:
            records = self._read_records()
        except LocalStoreUnreadable as e:
            logger.warning(f"Ignoring unreadable local store {self._path}: {e}")
            return []

        scripts: List[ScriptAnalysis] = []
        for record in records:
            try:
                scripts.append(ScriptAnalysis.from_record(record))
            except ValidationError as e:
                logger.warning(f"Skipping invalid local record: {e}")
        return scripts

    def save(self, script: ScriptAnalysis) -> None:
        """Insert ``script`` at the front or replace the record with its id.

        Raises:
            PersistenceWriteFailed: If the file cannot be read or written.
        """
        try:
            records = self._read_records()
        except LocalStoreUnreadable as e:
            raise PersistenceWriteFailed(script.id, str(e)) from e

        record = script.to_record()
        for i, existing in enumerate(records):
            if _record_id(existing) == script.id:
                records[i] = record
                break
        else:
            records.insert(0, record)

        try:
            self._write(records)
        except OSError as e:
            raise PersistenceWriteFailed(script.id, str(e)) from e
        logger.debug(f"Saved {script.id} to local store")

    def fetch_all(self, owner_id: str) -> List[ScriptAnalysis]:
        return sort_newest_first(s for s in self.load_all() if s.user_id == owner_id)

    def delete(self, script_id: str, owner_id: str) -> None:
        """Remove the record with ``script_id`` owned by ``owner_id``.

        Raises:
            PersistenceDeleteFailed: If the file cannot be read or written.
        """
        try:
            records = self._read_records()
        except LocalStoreUnreadable as e:
            raise PersistenceDeleteFailed(script_id, str(e)) from e

        remaining = [
            r for r in records
            if not (_record_id(r) == script_id and r.get("userId") == owner_id)
        ]
        if len(remaining) == len(records):
            return

        try:
            self._write(remaining)
        except OSError as e:
            raise PersistenceDeleteFailed(script_id, str(e)) from e
        logger.debug(f"Deleted {script_id} from local store")

    def clear(self) -> None:
        """Remove every record."""
        self._write([])

    def _read_records(self) -> List[Any]:
        """Return the raw records in the file; a missing file has none.

        Raises:
            LocalStoreUnreadable: If the file cannot be read or parsed.
        """
        if not self._path.exists():
            return []

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                records = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise LocalStoreUnreadable(f"{self._path}: {e}") from e

        if records is None:
            return []
        if not isinstance(records, list):
            raise LocalStoreUnreadable(f"{self._path}: expected a list of records")
        return records

    def _write(self, records: List[Any]) -> None:
        """Replace the file contents with ``records``."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                records,
                f,
                allow_unicode=True,
                default_flow_style=False,
                sort_keys=False,
            )
        tmp_path.replace(self._path)


def _record_id(record: Any) -> Optional[str]:
    return record.get("id") if isinstance(record, dict) else None
