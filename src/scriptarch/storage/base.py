"""Script store abstraction."""

from abc import ABC, abstractmethod
from typing import Iterable, List

from ..models import ScriptAnalysis


def sort_newest_first(scripts: Iterable[ScriptAnalysis]) -> List[ScriptAnalysis]:
    """Return scripts ordered by ``created_at`` descending."""
    return sorted(scripts, key=lambda s: s.created_at, reverse=True)


class ScriptStore(ABC):
    """A place scripts can be saved to, listed from and deleted from."""

    @abstractmethod
    def save(self, script: ScriptAnalysis) -> None:
        """Insert ``script`` or replace the stored record with the same id."""
        ...

    @abstractmethod
    def fetch_all(self, owner_id: str) -> List[ScriptAnalysis]:
        """Return every script owned by ``owner_id``, newest first."""
        ...

    @abstractmethod
    def delete(self, script_id: str, owner_id: str) -> None:
        """Remove the script with ``script_id`` owned by ``owner_id``."""
        ...
