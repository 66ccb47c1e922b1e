"""Video acquisition from local files and remote URLs."""

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import quote, urlparse

import requests

from ..config import config
from ..errors import (
    DownloadBlocked,
    DownloadFailed,
    FileTooLarge,
    NotAVideo,
    ReadFailed,
    ResolutionFailed,
)
from ..messages import t

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]

VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi", ".wmv", ".flv", ".webm", ".mkv"}
DEFAULT_MIME_TYPE = "video/mp4"


def guess_mime_type(name: str) -> str:
    """Guess a video MIME type from a file name."""
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or DEFAULT_MIME_TYPE


def is_video_file(path: Path) -> bool:
    """Return True if the file looks like a video by MIME type or extension."""
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type and mime_type.startswith("video/"):
        return True
    return path.suffix.lower() in VIDEO_EXTENSIONS


@dataclass
class MediaPayload:
    """Raw video ready for encoding.

    File payloads keep only their path until they are encoded, so a batch
    never holds more than one video in memory at a time.
    """

    name: str
    mime_type: str
    size: int
    data: Optional[bytes] = None
    path: Optional[Path] = None


class MediaFetcher:
    """Obtain video bytes from a file or a URL.

    This fetcher handles:
    - Size checks against the configured ceiling before any network call
    - Resolving short-video platform links through an external resolver
    - Falling back through passthrough proxy routes when a fetch is blocked
    - Rejecting image and HTML payloads returned by misbehaving proxies
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        max_size_bytes: Optional[int] = None,
        resolver_url: Optional[str] = None,
        proxy_routes: Optional[list[str]] = None,
        platform_domains: Optional[list[str]] = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            session: HTTP session to use. Created if not provided.
            timeout: Seconds allowed per HTTP call. Defaults to config.fetch_timeout.
            max_size_bytes: Largest accepted payload. Defaults to config.max_file_size_bytes.
            resolver_url: Platform link resolver endpoint. Defaults to config.resolver_url.
            proxy_routes: Ordered proxy templates containing '{url}'.
            platform_domains: Domains whose links need resolving first.
        """
        config.validate_routes()
        self._session = session or requests.Session()
        self._timeout = timeout or config.fetch_timeout
        self._max_size = max_size_bytes or config.max_file_size_bytes
        self._resolver_url = resolver_url or config.resolver_url
        self._proxy_routes = list(proxy_routes if proxy_routes is not None else config.proxy_routes)
        self._platform_domains = list(platform_domains or config.platform_domains)

    @property
    def max_size_mb(self) -> float:
        """Return the size ceiling in megabytes."""
        return self._max_size / (1024 * 1024)

    def fetch_file(self, path: Path) -> MediaPayload:
        """Check a local video file and describe it for encoding.

        Args:
            path: Path to the video file.

        Returns:
            MediaPayload pointing at the file.

        Raises:
            ReadFailed: If the file cannot be inspected.
            FileTooLarge: If the file exceeds the size ceiling.
        """
        try:
            size = path.stat().st_size
        except OSError as e:
            raise ReadFailed(path.name, str(e))

        self._check_size(path.name, size)

        logger.debug(f"Accepted file {path.name} ({size / 1024 / 1024:.2f} MB)")
        return MediaPayload(
            name=path.name,
            mime_type=guess_mime_type(path.name),
            size=size,
            path=path,
        )

    def fetch_url(
        self,
        url: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> MediaPayload:
        """Download a video from a URL.

        Args:
            url: Direct media URL, web page URL, or short-video platform link.
            on_progress: Optional callback receiving human readable status.

        Returns:
            MediaPayload holding the downloaded bytes.

        Raises:
            ResolutionFailed: If a platform link cannot be resolved.
            DownloadBlocked: If every proxy route refuses a resolved platform URL.
            DownloadFailed: If a generic URL cannot be fetched at all.
            NotAVideo: If the payload is an image or HTML page.
            FileTooLarge: If the payload exceeds the size ceiling.
        """
        notify = on_progress or (lambda _msg: None)

        if self.is_platform_url(url):
            notify(t("resolving_platform"))
            media_url = self.resolve_platform_url(url)

            notify(t("downloading_platform"))
            response = self._fetch_via_routes(media_url)
            if response is None:
                raise DownloadBlocked(url, attempts=len(self._proxy_routes))
        else:
            notify(t("downloading_url"))
            response = self._try_fetch(url)
            if response is None:
                response = self._fetch_via_routes(url)
            if response is None:
                raise DownloadFailed(url, attempts=len(self._proxy_routes) + 1)

        content_type = response.headers.get("Content-Type", "")
        mime_type = content_type.split(";")[0].strip().lower()
        if mime_type.startswith("image/") or mime_type == "text/html":
            raise NotAVideo(url, content_type)

        data = response.content
        self._check_size(url, len(data))

        logger.info(f"Downloaded {len(data) / 1024 / 1024:.2f} MB from {url}")
        return MediaPayload(
            name=url,
            mime_type=mime_type or DEFAULT_MIME_TYPE,
            size=len(data),
            data=data,
        )

    def is_platform_url(self, url: str) -> bool:
        """Return True if the URL belongs to a short-video platform."""
        host = (urlparse(url).hostname or "").lower()
        return any(
            host == domain or host.endswith(f".{domain}")
            for domain in self._platform_domains
        )

    def resolve_platform_url(self, url: str) -> str:
        """Look up the direct media URL for a platform link.

        Args:
            url: Platform share link.

        Returns:
            Direct playable media URL.

        Raises:
            ResolutionFailed: If the resolver fails or returns no media URL.
        """
        logger.info(f"Resolving platform link: {url}")
        try:
            response = self._session.get(
                self._resolver_url,
                params={"url": url},
                timeout=self._timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise ResolutionFailed(url, str(e))
        except ValueError as e:
            raise ResolutionFailed(url, f"Resolver returned invalid JSON: {e}")

        if not isinstance(payload, dict):
            raise ResolutionFailed(url, "Resolver returned an unexpected payload")

        data = payload.get("data") or {}
        play_url = data.get("play") if isinstance(data, dict) else None
        if payload.get("code") != 0 or not play_url:
            raise ResolutionFailed(url, payload.get("msg") or "No playable media URL")

        logger.debug(f"Resolved {url} -> {play_url}")
        return play_url

    def _fetch_via_routes(self, url: str) -> Optional[requests.Response]:
        """Try each proxy route in order and return the first usable response."""
        encoded = quote(url, safe="")
        for attempt, route in enumerate(self._proxy_routes, start=1):
            proxied = route.format(url=encoded)
            logger.debug(
                f"Fetching via proxy route {attempt}/{len(self._proxy_routes)}: {proxied}"
            )
            response = self._try_fetch(proxied)
            if response is not None:
                return response
        return None

    def _try_fetch(self, url: str) -> Optional[requests.Response]:
        """Fetch a URL once; failures and timeouts yield None."""
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.Timeout:
            logger.warning(f"Timed out after {self._timeout:g}s: {url}")
            return None
        except requests.RequestException as e:
            logger.warning(f"Fetch failed: {url}: {e}")
            return None

        if not response.ok:
            logger.warning(f"Fetch returned {response.status_code}: {url}")
            return None
        if not response.content:
            logger.warning(f"Fetch returned an empty body: {url}")
            return None
        return response

    def _check_size(self, name: str, size: int) -> None:
        if size > self._max_size:
            raise FileTooLarge(name, size / (1024 * 1024), self.max_size_mb)
