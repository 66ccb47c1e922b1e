"""Script analysis data model."""

import time
import uuid
from typing import Any, List

from pydantic import BaseModel, Field, field_validator

from .scene import Scene

# Owner value that routes a record to the local guest store
GUEST_USER_ID = "guest"


def new_script_id() -> str:
    """Return a collision-resistant script identifier."""
    return f"script-{int(time.time() * 1000)}-{uuid.uuid4().hex}"


def now_millis() -> int:
    """Return the current epoch time in milliseconds."""
    return int(time.time() * 1000)


class ScriptAnalysis(BaseModel):
    """One analyzed video.

    Instances are immutable: every edit returns a new record so that
    in-memory state never drifts from what was handed to the store.
    """

    id: str = Field(default_factory=new_script_id, description="Globally unique script ID")
    user_id: str = Field(GUEST_USER_ID, alias="userId", description="Owning user or guest sentinel")
    title: str = Field("", description="Display title")
    video_name: str = Field("", alias="videoName", description="Source file name or URL")
    created_at: int = Field(default_factory=now_millis, alias="createdAt", description="Epoch millis")
    tags: List[str] = Field(default_factory=list, description="User-assigned labels")
    scenes: List[Scene] = Field(default_factory=list, description="Scenes in narrative order")

    class Config:
        """Pydantic config."""
        frozen = True
        populate_by_name = True

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, tags: List[str]) -> List[str]:
        unique: List[str] = []
        for tag in tags:
            tag = tag.strip()
            if tag and tag not in unique:
                unique.append(tag)
        return unique

    def add_tag(self, tag: str) -> "ScriptAnalysis":
        """Return a copy with ``tag`` appended, unless blank or already present."""
        tag = tag.strip()
        if not tag or tag in self.tags:
            return self
        return self.model_copy(update={"tags": [*self.tags, tag]})

    def remove_tag(self, tag: str) -> "ScriptAnalysis":
        """Return a copy without ``tag``."""
        if tag not in self.tags:
            return self
        return self.model_copy(update={"tags": [t for t in self.tags if t != tag]})

    def with_scenes(self, scenes: List[Scene]) -> "ScriptAnalysis":
        """Return a copy with its scenes replaced; id, owner and timestamp are kept."""
        return self.model_copy(update={"scenes": list(scenes)})

    def with_owner(self, user_id: str) -> "ScriptAnalysis":
        """Return a copy owned by ``user_id``."""
        return self.model_copy(update={"user_id": user_id})

    def to_record(self) -> dict[str, Any]:
        """Serialize to the flat document shape used by both stores."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ScriptAnalysis":
        """Load from a stored document."""
        return cls.model_validate(record)
