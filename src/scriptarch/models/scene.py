"""Scene data model."""

import uuid

from pydantic import BaseModel, Field


def new_scene_id() -> str:
    """Return a fresh, never reused scene identifier."""
    return f"scene-{uuid.uuid4().hex}"


class Scene(BaseModel):
    """One timestamped shot of an analyzed script."""

    id: str = Field(default_factory=new_scene_id, description="Unique scene identifier")
    start_time: str = Field("", alias="startTime", description="Display-only start timestamp")
    end_time: str = Field("", alias="endTime", description="Display-only end timestamp")
    type: str = Field("", description="Free-text label, e.g. 'Hook' or 'Product Info'")
    visual_description: str = Field("", alias="visualDescription", description="What is on screen")
    audio_script: str = Field("", alias="audioScript", description="What is said")

    class Config:
        """Pydantic config."""
        frozen = True
        populate_by_name = True

    @property
    def label(self) -> str:
        """Return the scene label with its time range."""
        return f"{self.type} ({self.start_time} - {self.end_time})"
