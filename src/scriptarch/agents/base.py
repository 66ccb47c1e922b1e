"""Base agent abstraction."""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar, Optional

from google.genai import types

from ..services.gemini import GeminiClient
from ..config import config

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")

SCENE_FIELDS = ("startTime", "endTime", "type", "visualDescription", "audioScript")

SCENE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={name: types.Schema(type=types.Type.STRING) for name in SCENE_FIELDS},
    required=list(SCENE_FIELDS),
)

SCENES_ARRAY_SCHEMA = types.Schema(type=types.Type.ARRAY, items=SCENE_SCHEMA)


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """Abstract base class for AI agents.

    Provides shared functionality for agents that use Gemini for generation.
    Subclasses must implement the `run` method and define their prompts.
    """

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        model: Optional[str] = None,
    ) -> None:
        """Initialize the agent.

        Args:
            client: GeminiClient instance. Created if not provided.
            model: Model to use. Defaults to config.gemini_model.

        Raises:
            MissingApiKey: If a client has to be created and no key is set.
        """
        self._client = client or GeminiClient(model=model or config.gemini_model)
        self._logger = logging.getLogger(f"{__name__}.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the agent's name."""
        ...

    @property
    @abstractmethod
    def system_prompt(self) -> Optional[str]:
        """Return the system instruction for this agent."""
        ...

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._client.model

    @abstractmethod
    def run(self, input_data: InputT) -> OutputT:
        """Execute the agent's main task.

        Args:
            input_data: Input data for the agent.

        Returns:
            Structured output from the agent.
        """
        ...

    def _generate(
        self,
        contents: Any,
        response_schema: Optional[types.Schema] = None,
        safety_settings: Optional[list[types.SafetySetting]] = None,
    ) -> str:
        """Send a request using the agent's client and system instruction."""
        try:
            response = self._client.generate(
                contents=contents,
                system=self.system_prompt,
                response_schema=response_schema,
                safety_settings=safety_settings,
            )
            self._logger.debug(f"Raw response: {response[:100]}...")
            return response

        except Exception as e:
            self._logger.error(f"Error generating content: {e}")
            raise

    @staticmethod
    def _extract_json(response: str) -> str:
        """Extract a JSON object from text that may carry markdown or chatter."""
        if not response:
            return "{}"

        start = response.find("{")
        end = response.rfind("}")
        if start != -1 and end > start:
            return response[start:end + 1]

        return re.sub(r"```(json)?", "", response, flags=re.IGNORECASE).strip()

    def _load_json(self, response: str) -> Any:
        """Parse the JSON payload of a response."""
        return json.loads(self._extract_json(response))
