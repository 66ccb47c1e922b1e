"""Orchestration session state."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union
from pathlib import Path

from .script import ScriptAnalysis

# A batch item is either a local video file or a URL
VideoSource = Union[Path, str]


def source_name(source: VideoSource) -> str:
    """Return the display name of a batch item."""
    if isinstance(source, Path):
        return source.name
    return str(source)


class AnalysisStatus(str, Enum):
    """Orchestrator phase."""
    IDLE = "idle"
    ANALYZING = "analyzing"
    OPTIMIZING = "optimizing"
    COMPLETE = "complete"
    ERROR = "error"


class NotificationLevel(str, Enum):
    """Severity of a user-facing notification."""
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A message meant for the user, in their language."""

    message: str
    level: NotificationLevel = NotificationLevel.SUCCESS


@dataclass(frozen=True)
class BatchProgress:
    """Snapshot of where a batch run currently is."""

    phase: AnalysisStatus = AnalysisStatus.IDLE
    current_index: int = 0
    total: int = 0
    current_item: Optional[VideoSource] = None
    detail: Optional[str] = None


@dataclass
class ItemFailure:
    """One batch item that could not be turned into a script."""

    item: str
    error_message: str
    error_type: str


@dataclass
class BatchReport:
    """Outcome of a batch run."""

    total: int
    scripts: List[ScriptAnalysis] = field(default_factory=list)
    failures: List[ItemFailure] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def succeeded(self) -> int:
        """Return the number of items that produced a script."""
        return len(self.scripts)

    @property
    def all_failed(self) -> bool:
        """Return True if a non-empty batch produced nothing."""
        return self.total > 0 and self.succeeded == 0
