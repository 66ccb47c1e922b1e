"""External service integrations."""

from .gemini import GeminiClient
from .media import MediaFetcher, MediaPayload, is_video_file
from .encoding import encode_payload

__all__ = [
    "GeminiClient",
    "MediaFetcher",
    "MediaPayload",
    "is_video_file",
    "encode_payload",
]
