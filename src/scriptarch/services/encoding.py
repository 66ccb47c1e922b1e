"""Base64 encoding of video payloads."""

import base64
import logging

from ..errors import ReadFailed
from .media import MediaPayload

logger = logging.getLogger(__name__)


def encode_payload(payload: MediaPayload) -> str:
    """Encode a video payload as base64 text.

    File payloads are read here, so a file that disappears or becomes
    unreadable after acquisition fails with ReadFailed.

    Args:
        payload: Payload from MediaFetcher.

    Returns:
        Base64 encoded video.

    Raises:
        ReadFailed: If the backing file cannot be read.
    """
    if payload.data is not None:
        data = payload.data
    elif payload.path is not None:
        try:
            data = payload.path.read_bytes()
        except OSError as e:
            raise ReadFailed(payload.name, str(e))
    else:
        raise ReadFailed(payload.name, "Payload has neither data nor path")

    encoded = base64.b64encode(data).decode("ascii")
    logger.debug(f"Encoded {payload.name}: {len(encoded) / 1024 / 1024:.2f} MB base64")
    return encoded
