"""Configuration management."""

import os
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_PROXY_ROUTES = [
    "https://corsproxy.io/?{url}",
    "https://api.allorigins.win/raw?url={url}",
    "https://api.codetabs.com/v1/proxy?quest={url}",
]


def _env_list(name: str, default: List[str]) -> List[str]:
    """Read a comma separated list from the environment."""
    raw = os.getenv(name, "")
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or list(default)


class Config(BaseModel):
    """Application configuration."""

    # API Keys
    gemini_api_key: str = Field(
        default_factory=lambda: (
            os.getenv("GEMINI_API_KEY")
            or os.getenv("GOOGLE_API_KEY")
            or os.getenv("API_KEY", "")
        ),
        description="Google Gemini API key"
    )
    google_cloud_project: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT", ""),
        description="Google Cloud project ID for Firestore"
    )
    firestore_collection: str = Field(
        default_factory=lambda: os.getenv("SCRIPTARCH_COLLECTION", "scripts"),
        description="Firestore collection holding user scripts"
    )

    # Identity
    user_id: str = Field(
        default_factory=lambda: os.getenv("SCRIPTARCH_USER_ID", ""),
        description="Signed-in user ID (empty for guest mode)"
    )
    language: str = Field(
        default_factory=lambda: os.getenv("SCRIPTARCH_LANGUAGE", "en"),
        description="Language for user-facing messages ('en' or 'vi')"
    )

    # Paths
    data_dir: Path = Field(
        default_factory=lambda: Path(
            os.getenv("SCRIPTARCH_DATA_DIR", "~/.scriptarch")
        ).expanduser(),
        description="Directory for the local guest store"
    )

    # Model settings
    gemini_model: str = Field(
        default_factory=lambda: os.getenv("SCRIPTARCH_MODEL", "gemini-2.5-flash"),
        description="Gemini model used for analysis and optimization"
    )

    # Limits and timeouts
    max_file_size_mb: float = Field(
        default_factory=lambda: float(os.getenv("SCRIPTARCH_MAX_FILE_MB", "30")),
        description="Largest accepted video in megabytes",
        gt=0,
    )
    fetch_timeout: float = Field(
        default_factory=lambda: float(os.getenv("SCRIPTARCH_FETCH_TIMEOUT", "60")),
        description="Seconds allowed per download or resolver call",
        gt=0,
    )
    ai_timeout: float = Field(
        default_factory=lambda: float(os.getenv("SCRIPTARCH_AI_TIMEOUT", "300")),
        description="Seconds allowed per AI request",
        gt=0,
    )
    batch_delay: float = Field(
        default_factory=lambda: float(os.getenv("SCRIPTARCH_BATCH_DELAY", "1.5")),
        description="Pause between batch items in seconds",
        ge=0,
    )

    # Link resolution
    resolver_url: str = Field(
        default_factory=lambda: os.getenv(
            "SCRIPTARCH_RESOLVER_URL", "https://www.tikwm.com/api/"
        ),
        description="Short-video link resolver endpoint"
    )
    proxy_routes: List[str] = Field(
        default_factory=lambda: _env_list("SCRIPTARCH_PROXY_ROUTES", DEFAULT_PROXY_ROUTES),
        description="Passthrough fetch templates containing '{url}', tried in order"
    )
    platform_domains: List[str] = Field(
        default_factory=lambda: _env_list("SCRIPTARCH_PLATFORM_DOMAINS", ["tiktok.com"]),
        description="Domains whose links go through the resolver"
    )

    class Config:
        """Pydantic config."""
        frozen = False

    @property
    def max_file_size_bytes(self) -> int:
        """Return the size ceiling in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)

    def validate_required(self, api_key: Optional[str] = None) -> None:
        """Validate that a Gemini credential is set.

        Args:
            api_key: Key to check instead of the configured one.

        Raises:
            MissingApiKey: If no usable key is configured.
        """
        from .errors import MissingApiKey

        key = api_key or self.gemini_api_key
        if not key or len(key) < 5:
            raise MissingApiKey()

    def validate_remote_required(self) -> None:
        """Validate that Firestore settings are present.

        Raises:
            ValueError: If any required remote store configuration is missing.
        """
        missing: list[str] = []

        if not self.google_cloud_project:
            missing.append("GOOGLE_CLOUD_PROJECT")
        if not self.firestore_collection:
            missing.append("SCRIPTARCH_COLLECTION")

        if missing:
            raise ValueError(
                f"Missing required remote store configuration: {', '.join(missing)}. "
                "Set the corresponding environment variables."
            )

    def validate_routes(self) -> None:
        """Validate proxy route templates.

        Raises:
            ValueError: If a route has no '{url}' placeholder.
        """
        for route in self.proxy_routes:
            if "{url}" not in route:
                raise ValueError(
                    f"Proxy route must contain a '{{url}}' placeholder. Got: {route}"
                )


# Global config instance
config = Config()
