"""Google Gemini API client wrapper."""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Any, Optional

from google import genai
from google.genai import types

from ..config import config
from ..errors import AnalysisTimeout

logger = logging.getLogger(__name__)

# Harm categories the analysis request opts out of blocking
PERMISSIVE_SAFETY_SETTINGS = [
    types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE)
    for category in (
        types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
        types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
    )
]


class GeminiClient:
    """Client wrapper for the Gemini API with a hard per-request timeout."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[Any] = None,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            api_key: Gemini API key. Defaults to GEMINI_API_KEY env var.
            model: Model to use. Defaults to config.gemini_model.
            timeout: Seconds a request may take before it is abandoned.
                Defaults to config.ai_timeout.
            client: Pre-built ``genai.Client``. Created if not provided.

        Raises:
            MissingApiKey: If no credential is available.
        """
        self._api_key = api_key or config.gemini_api_key
        config.validate_required(self._api_key)

        self._model = model or config.gemini_model
        self._timeout = timeout or config.ai_timeout
        self._client = client or genai.Client(
            api_key=self._api_key,
            http_options=types.HttpOptions(timeout=int(self._timeout * 1000)),
        )

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    @property
    def timeout(self) -> float:
        """Return the per-request timeout in seconds."""
        return self._timeout

    def generate(
        self,
        contents: Any,
        system: Optional[str] = None,
        response_schema: Optional[types.Schema] = None,
        safety_settings: Optional[list[types.SafetySetting]] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Generate content with Gemini and return the response text.

        The request runs on a worker thread and races the configured timeout;
        a request that loses the race is abandoned.

        Args:
            contents: Prompt text or a list of ``types.Part``.
            system: Optional system instruction.
            response_schema: Optional structured output schema. When given the
                response MIME type is set to JSON.
            safety_settings: Optional safety settings.
            temperature: Optional sampling temperature.

        Returns:
            The response text, or an empty string if the model returned none.

        Raises:
            AnalysisTimeout: If the timeout elapses first.
        """
        generate_config = types.GenerateContentConfig(
            system_instruction=system,
            response_mime_type="application/json" if response_schema else None,
            response_schema=response_schema,
            safety_settings=safety_settings,
            temperature=temperature,
        )

        logger.debug(f"Sending request to {self._model} (timeout {self._timeout:g}s)")

        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(
                self._client.models.generate_content,
                model=self._model,
                contents=contents,
                config=generate_config,
            )
            try:
                response = future.result(timeout=self._timeout)
            except FuturesTimeoutError:
                future.cancel()
                logger.error(f"Gemini request timed out after {self._timeout:g}s")
                raise AnalysisTimeout(self._timeout)
        finally:
            executor.shutdown(wait=False)

        text = getattr(response, "text", None) or ""
        logger.debug(f"Received response of length: {len(text)}")
        return text
