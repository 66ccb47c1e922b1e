"""Data models for the script architect."""

from .scene import Scene
from .script import ScriptAnalysis, GUEST_USER_ID
from .session import (
    AnalysisStatus,
    BatchProgress,
    BatchReport,
    ItemFailure,
    Notification,
    NotificationLevel,
    VideoSource,
    source_name,
)

__all__ = [
    "Scene",
    "ScriptAnalysis",
    "GUEST_USER_ID",
    "AnalysisStatus",
    "BatchProgress",
    "BatchReport",
    "ItemFailure",
    "Notification",
    "NotificationLevel",
    "VideoSource",
    "source_name",
]
