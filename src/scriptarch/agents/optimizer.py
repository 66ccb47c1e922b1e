"""Optimizer agent that rewrites a script's spoken lines."""

import json
from typing import List

from google.genai import types
from pydantic import ValidationError

from ..errors import OptimizationFailed
from ..models import Scene, ScriptAnalysis
from ..models.scene import new_scene_id
from .analysis import RawScene
from .base import BaseAgent, SCENES_ARRAY_SCHEMA

OPTIMIZE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={"scenes": SCENES_ARRAY_SCHEMA},
    required=["scenes"],
)


class ScriptOptimizerAgent(BaseAgent[ScriptAnalysis, List[Scene]]):
    """Agent for rewriting audio scripts to be more engaging.

    Only ``audioScript`` is meant to change. Scene IDs are remapped onto the
    input by position so the rewritten scenes replace the originals in place.
    """

    @property
    def name(self) -> str:
        """Return the agent's name."""
        return "ScriptOptimizerAgent"

    @property
    def system_prompt(self) -> None:
        return None

    def run(self, input_data: ScriptAnalysis) -> List[Scene]:
        """Rewrite the spoken text of every scene.

        Args:
            input_data: The saved script to optimize.

        Returns:
            New scenes in the same order, carrying the input scene IDs.

        Raises:
            OptimizationFailed: If the request or the response parsing fails.
        """
        originals = input_data.scenes
        self._logger.info(
            f"Optimizing script {input_data.id} ({len(originals)} scenes)"
        )

        try:
            response = self._generate(
                contents=self._build_prompt(originals),
                response_schema=OPTIMIZE_SCHEMA,
            )
        except Exception as e:
            raise OptimizationFailed(input_data.id, getattr(e, "message", str(e))) from e

        try:
            data = self._load_json(response)
            raw_scenes = [RawScene.model_validate(s) for s in data["scenes"]]
        except (json.JSONDecodeError, ValidationError, KeyError, TypeError) as e:
            raise OptimizationFailed(input_data.id, f"Invalid response: {e}") from e

        if len(raw_scenes) < len(originals):
            raise OptimizationFailed(
                input_data.id,
                f"Model returned {len(raw_scenes)} of {len(originals)} scenes",
            )

        scenes: List[Scene] = []
        for i, raw in enumerate(raw_scenes):
            original = originals[i] if i < len(originals) else None
            if original is None:
                self._logger.warning(f"Extra scene {i} in optimized output, assigning new id")
                original = Scene(id=new_scene_id())
            scenes.append(
                Scene(
                    id=original.id,
                    start_time=raw.startTime or original.start_time,
                    end_time=raw.endTime or original.end_time,
                    type=raw.type or original.type,
                    visual_description=raw.visualDescription or original.visual_description,
                    audio_script=raw.audioScript or original.audio_script,
                )
            )

        return scenes

    @staticmethod
    def _build_prompt(scenes: List[Scene]) -> str:
        """Build the rewrite prompt from the current scenes."""
        serialized = json.dumps(
            [s.model_dump(by_alias=True, exclude={"id"}) for s in scenes],
            ensure_ascii=False,
        )
        return "\n".join([
            "Rewrite these scenes to be more viral on TikTok.",
            "Change ONLY audioScript. Keep startTime, endTime, type and "
            "visualDescription exactly as given, and keep the same number and "
            "order of scenes.",
            "",
            f"SCENES: {serialized}",
        ])
