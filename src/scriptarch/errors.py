"""
Exceptions for the video-to-script pipeline.

Every failure the pipeline can surface has its own type so the orchestrator
can tell per-item failures apart from configuration problems.
"""

from typing import Optional

from .messages import t


class ScriptArchError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to a dictionary for reports."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# ============================================
# Media acquisition
# ============================================

class AcquisitionError(ScriptArchError):
    """Base exception for failures while obtaining video bytes."""
    pass


class FileTooLarge(AcquisitionError):
    """Payload is larger than the configured ceiling."""

    def __init__(self, name: str, size_mb: float, limit_mb: float):
        super().__init__(
            message=t("error_file_too_large", name=name, size_mb=size_mb, limit_mb=limit_mb),
            details={"item": name, "size_mb": round(size_mb, 2), "limit_mb": limit_mb},
        )


class ReadFailed(AcquisitionError):
    """A file handle could not be read."""

    def __init__(self, name: str, reason: str = None):
        super().__init__(
            message=t("error_read_failed", name=name),
            details={"item": name, "reason": reason},
        )


class ResolutionFailed(AcquisitionError):
    """The platform link resolver did not return a playable media URL."""

    def __init__(self, url: str, reason: str = None):
        super().__init__(
            message=t("error_resolution_failed", url=url),
            details={"item": url, "reason": reason},
        )


class DownloadBlocked(AcquisitionError):
    """Every proxy route refused the resolved platform media URL."""

    def __init__(self, url: str, attempts: int):
        super().__init__(
            message=t("error_download_blocked", url=url, attempts=attempts),
            details={"item": url, "attempts": attempts},
        )


class DownloadFailed(AcquisitionError):
    """A generic URL could not be fetched directly or through any proxy."""

    def __init__(self, url: str, attempts: int):
        super().__init__(
            message=t("error_download_failed", url=url, attempts=attempts),
            details={"item": url, "attempts": attempts},
        )


class NotAVideo(AcquisitionError):
    """The fetched payload declares an image or HTML content type."""

    def __init__(self, name: str, content_type: str):
        super().__init__(
            message=t("error_not_a_video", name=name, content_type=content_type),
            details={"item": name, "content_type": content_type},
        )


# ============================================
# AI service
# ============================================

class AnalysisError(ScriptArchError):
    """Base exception for failures talking to the generative model."""
    pass


class MissingApiKey(AnalysisError):
    """No Gemini credential is configured."""

    def __init__(self):
        super().__init__(
            message=t("error_missing_api_key"),
            details={"suggestion": "Set GEMINI_API_KEY in the environment or .env"},
        )


class AnalysisTimeout(AnalysisError):
    """The model did not answer before the hard timeout."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            message=t("error_analysis_timeout", timeout_seconds=timeout_seconds),
            details={"timeout_seconds": timeout_seconds},
        )


class AnalysisRefused(AnalysisError):
    """The model answered with no text at all."""

    def __init__(self):
        super().__init__(message=t("error_analysis_refused"))


class MalformedAiResponse(AnalysisError):
    """The model's text did not match the script schema.

    Recovered inside the analysis agent; never reaches the orchestrator.
    """

    def __init__(self, raw_text: str, reason: str = None):
        super().__init__(
            message=t("error_malformed_response"),
            details={"reason": reason, "preview": (raw_text or "")[:200]},
        )
        self.raw_text = raw_text


class OptimizationFailed(AnalysisError):
    """Rewriting a script's audio text failed."""

    def __init__(self, script_id: str, reason: str = None):
        super().__init__(
            message=t("error_optimization_failed", script_id=script_id),
            details={"script_id": script_id, "reason": reason},
        )


# ============================================
# Persistence
# ============================================

class PersistenceError(ScriptArchError):
    """Base exception for script store failures."""
    pass


class PersistenceWriteFailed(PersistenceError):
    """Saving a script to its store failed."""

    def __init__(self, script_id: str, reason: str = None):
        super().__init__(
            message=t("error_write_failed", script_id=script_id),
            details={"script_id": script_id, "reason": reason},
        )


class PersistenceReadFailed(PersistenceError):
    """Listing an owner's scripts failed."""

    def __init__(self, owner_id: str, reason: str = None):
        super().__init__(
            message=t("error_list_failed", owner_id=owner_id),
            details={"owner_id": owner_id, "reason": reason},
        )


class PersistenceDeleteFailed(PersistenceError):
    """Deleting a script from its store failed."""

    def __init__(self, script_id: str, reason: str = None):
        super().__init__(
            message=t("error_delete_failed", script_id=script_id),
            details={"script_id": script_id, "reason": reason},
        )
