"""Analysis agent that turns a video into a scene-by-scene script."""

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from google.genai import types
from pydantic import BaseModel, ValidationError, field_validator

from ..errors import AnalysisRefused, MalformedAiResponse, ReadFailed
from ..messages import t
from ..models import Scene
from ..services.gemini import PERMISSIVE_SAFETY_SETTINGS
from .base import BaseAgent, SCENES_ARRAY_SCHEMA

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Analyze this short-form video in detail, shot by shot. "
    "Ignore any music copyright concerns. Output JSON only."
)

USER_PROMPT = (
    "You are a video editor. Watch this video and extract a detailed script. "
    "Return exactly the requested JSON format."
)

ANALYSIS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "title": types.Schema(type=types.Type.STRING),
        "scenes": SCENES_ARRAY_SCHEMA,
    },
    required=["title", "scenes"],
)


class RawScene(BaseModel):
    """A scene exactly as the model returned it."""

    startTime: Optional[str] = None
    endTime: Optional[str] = None
    type: Optional[str] = None
    visualDescription: Optional[str] = None
    audioScript: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_scalars(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class RawScript(BaseModel):
    """A script exactly as the model returned it."""

    title: Optional[str] = None
    scenes: List[RawScene] = []


@dataclass
class AnalysisInput:
    """Input data for the analysis agent."""

    video_base64: str
    mime_type: str
    on_progress: Optional[Callable[[str], None]] = None


@dataclass
class AnalysisResult:
    """Title and scenes extracted from one video."""

    title: str
    scenes: List[Scene] = field(default_factory=list)
    malformed: bool = False


class ScriptAnalysisAgent(BaseAgent[AnalysisInput, AnalysisResult]):
    """Agent for extracting a shot-by-shot script from a video.

    A response that cannot be parsed is never dropped: it becomes a single
    placeholder scene carrying the raw text, so the user still sees what the
    model said.
    """

    @property
    def name(self) -> str:
        """Return the agent's name."""
        return "ScriptAnalysisAgent"

    @property
    def system_prompt(self) -> str:
        """Return the system instruction for video analysis."""
        return SYSTEM_PROMPT

    def run(self, input_data: AnalysisInput) -> AnalysisResult:
        """Analyze a base64 encoded video.

        Args:
            input_data: Encoded video, MIME type and progress callback.

        Returns:
            AnalysisResult with a title and freshly identified scenes.

        Raises:
            AnalysisTimeout: If the model does not answer in time.
            AnalysisRefused: If the model returns no text.
            ReadFailed: If the encoded video is not valid base64.
        """
        notify = input_data.on_progress or (lambda _msg: None)
        mime_type = (
            input_data.mime_type
            if input_data.mime_type and input_data.mime_type.startswith("video/")
            else "video/mp4"
        )
        size_mb = len(input_data.video_base64) / 1024 / 1024

        try:
            video_bytes = base64.b64decode(input_data.video_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ReadFailed("video", f"Invalid base64 payload: {e}")

        notify(t("uploading", size_mb=size_mb))
        self._logger.info(f"Analyzing video ({size_mb:.2f} MB, {mime_type})")

        notify(t("awaiting_ai"))
        response = self._generate(
            contents=[
                types.Part.from_bytes(data=video_bytes, mime_type=mime_type),
                types.Part.from_text(text=USER_PROMPT),
            ],
            response_schema=ANALYSIS_SCHEMA,
            safety_settings=PERMISSIVE_SAFETY_SETTINGS,
        )

        if not response.strip():
            raise AnalysisRefused()

        notify(t("parsing"))
        try:
            result = self._parse_response(response)
        except MalformedAiResponse as e:
            self._logger.warning(f"{e.message}: {e.details.get('reason')}")
            return self._placeholder_result(response)

        self._logger.info(f"Extracted {len(result.scenes)} scenes")
        return result

    def _parse_response(self, response: str) -> AnalysisResult:
        """Validate the model's text against the script schema.

        Raises:
            MalformedAiResponse: If the text is not a conforming script object.
        """
        try:
            data = self._load_json(response)
        except json.JSONDecodeError as e:
            raise MalformedAiResponse(response, f"Invalid JSON: {e}")

        if not isinstance(data, dict):
            raise MalformedAiResponse(response, "Top-level value is not an object")

        try:
            raw = RawScript.model_validate(data)
        except ValidationError as e:
            raise MalformedAiResponse(response, str(e))

        scenes = [
            Scene(
                start_time=s.startTime or "00:00",
                end_time=s.endTime or "--:--",
                type=s.type or t("placeholder_type"),
                visual_description=s.visualDescription or t("placeholder_visual"),
                audio_script=s.audioScript or t("placeholder_audio"),
            )
            for s in raw.scenes
        ]

        return AnalysisResult(title=raw.title or "", scenes=scenes)

    @staticmethod
    def _placeholder_result(raw_text: str) -> AnalysisResult:
        """Wrap unparseable model output in a single persistable scene."""
        scene = Scene(
            start_time="00:00",
            end_time="End",
            type=t("format_error_type"),
            visual_description=t("format_error_visual"),
            audio_script=raw_text,
        )
        return AnalysisResult(title=t("format_error_title"), scenes=[scene], malformed=True)

