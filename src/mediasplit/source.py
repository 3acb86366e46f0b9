"""Input acquisition: local files and cached remote sources.

A local input only has to exist and be readable. A URL-like input is resolved
through a fetcher (yt-dlp by default) to a direct media URL; the media is
cached in ``cache_dir`` under a name derived from the remote title. A cached
file is reused only when its size matches the remote ``Content-Length``;
otherwise it is downloaded again.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

import httpx
import yt_dlp

from mediasplit.events import (
    DownloadLength,
    DownloadProgress,
    EventBus,
    SourceResolved,
    WarningIssued,
)
from mediasplit.exceptions import DownloadError, RemoteResolutionError
from mediasplit.utils.paths import check_readable_file, safe_filename
from mediasplit.utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)

URL_RE = re.compile(
    r"^(?:(?P<scheme>https?)://)?"
    r"(?P<www>www\.)?"
    r"(?P<host>[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z]{2,6})\b"
    r"(?P<path>\S*)$"
)

# Without a scheme or www. only plain path characters are accepted
BARE_PATH_RE = re.compile(r"[/?][-a-zA-Z0-9@:%_+.~#?&/=]*")

DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_HTTP_RETRIES = 3
DOWNLOAD_CHUNK_SIZE = 64 * 1024


def is_url(spec: str) -> bool:
    """Tell whether ``spec`` looks like a web address rather than a file.

    A scheme, a ``www.`` prefix or a path/query after the host is required,
    so ``song.flac`` stays a file name while ``youtu.be/abc`` is a URL.
    """
    if not isinstance(spec, str):
        return False
    match = URL_RE.match(spec.strip())
    if not match:
        return False
    if match["scheme"] or match["www"]:
        return True
    return BARE_PATH_RE.fullmatch(match["path"]) is not None


class Quality(str, Enum):
    """Download quality hint for remote sources."""

    highest = "highest"
    lowest = "lowest"
    highestaudio = "highestaudio"
    lowestaudio = "lowestaudio"
    highestvideo = "highestvideo"
    lowestvideo = "lowestvideo"


@dataclass
class RemoteSource:
    """A remote media resource resolved to one downloadable format."""

    id: str
    title: str
    container: str
    content_url: str
    content_length: int | None = None
    thumbnail_url: str | None = None
    webpage_url: str | None = None
    http_headers: dict[str, str] = field(default_factory=dict)

    @property
    def cache_name(self) -> str:
        """Deterministic cache file name: sanitized title + container."""
        stem = safe_filename(self.title) or safe_filename(self.id) or "source"
        return f"{stem}.{self.container}"


class RemoteFetcher(Protocol):
    """Resolves a page URL into a downloadable :class:`RemoteSource`."""

    def fetch_info(self, url: str, *, audio_only: bool, quality: Quality) -> RemoteSource: ...


# =============================================================================
# Format selection
# =============================================================================


def _has_audio(fmt: dict[str, Any]) -> bool:
    return fmt.get("acodec") not in (None, "none")


def _has_video(fmt: dict[str, Any]) -> bool:
    return fmt.get("vcodec") not in (None, "none")


def choose_format(
    formats: Iterable[dict[str, Any]],
    quality: Quality | str = Quality.highest,
    audio_only: bool = False,
) -> dict[str, Any]:
    """
    Pick one directly downloadable format.

    Only plain http(s) formats qualify (no HLS/DASH manifests). ``audio_only``
    restricts candidates to formats without a video stream. The quality hint
    then selects among muxed (``highest``/``lowest``), audio
    (``*audio``) or video (``*video``) formats.

    Raises:
        RemoteResolutionError: If no format matches
    """
    quality = Quality(quality)
    candidates = [
        f
        for f in formats
        if f.get("url") and f.get("protocol", "https") in ("http", "https") and f.get("ext")
    ]

    if audio_only:
        candidates = [f for f in candidates if _has_audio(f) and not _has_video(f)]

    if "audio" in quality.value or audio_only:
        pool = [f for f in candidates if _has_audio(f)]

        def score(f: dict[str, Any]) -> tuple[float, float]:
            return (f.get("abr") or f.get("tbr") or 0, f.get("filesize") or 0)

    elif "video" in quality.value:
        pool = [f for f in candidates if _has_video(f)]

        def score(f: dict[str, Any]) -> tuple[float, float]:
            return (f.get("height") or 0, f.get("tbr") or 0)

    else:
        pool = [f for f in candidates if _has_audio(f) and _has_video(f)]
        pool = pool or [f for f in candidates if _has_audio(f)]

        def score(f: dict[str, Any]) -> tuple[float, float]:
            return (f.get("height") or 0, f.get("tbr") or f.get("abr") or 0)

    if not pool:
        raise RemoteResolutionError("Could not find a suitable download format")

    pick = min if quality.value.startswith("lowest") else max
    return pick(pool, key=score)


class YtDlpFetcher:
    """Fetch remote metadata with yt-dlp, without downloading media."""

    def __init__(self, ydl_options: dict[str, Any] | None = None) -> None:
        self.ydl_options = {
            "quiet": True,
            "logger": logging.getLogger(f"{__name__}.ytdlp"),
            "skip_download": True,
            "noplaylist": True,
            **(ydl_options or {}),
        }

    def extract_info(self, url: str) -> dict[str, Any]:
        try:
            with yt_dlp.YoutubeDL(self.ydl_options) as ydl:
                info = ydl.extract_info(url, download=False)
        except yt_dlp.utils.DownloadError as e:
            raise RemoteResolutionError(f"Unable to fetch video info: {e}", url=url) from e
        if not info:
            raise RemoteResolutionError("Remote source returned no metadata", url=url)
        return dict(ydl_sanitize(info))

    def fetch_info(
        self,
        url: str,
        *,
        audio_only: bool = False,
        quality: Quality = Quality.highest,
    ) -> RemoteSource:
        info = self.extract_info(url)
        try:
            fmt = choose_format(info.get("formats") or [], quality, audio_only)
        except RemoteResolutionError as e:
            raise RemoteResolutionError(e.message, url=url) from e

        return RemoteSource(
            id=str(info.get("id") or ""),
            title=str(info.get("title") or info.get("id") or "source"),
            container=str(fmt["ext"]),
            content_url=str(fmt["url"]),
            content_length=fmt.get("filesize"),
            thumbnail_url=info.get("thumbnail"),
            webpage_url=info.get("webpage_url") or url,
            http_headers=dict(fmt.get("http_headers") or {}),
        )


def ydl_sanitize(info: dict[str, Any]) -> dict[str, Any]:
    """Strip yt-dlp internals from an info dict."""
    return yt_dlp.YoutubeDL.sanitize_info(info)


# =============================================================================
# Acquisition
# =============================================================================


class SourceAcquirer:
    """Resolve the working input file for a run.

    Publishes ``SourceResolved`` exactly once per ``resolve`` call, with
    ``cached=True`` when a previously downloaded file was reused.
    """

    def __init__(
        self,
        events: EventBus | None = None,
        fetcher: RemoteFetcher | None = None,
        *,
        audio_only: bool = False,
        quality: Quality | str = Quality.highest,
        download_cover: bool = False,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
        http_retries: int = DEFAULT_HTTP_RETRIES,
        client: httpx.Client | None = None,
    ) -> None:
        self.events = events or EventBus()
        self.fetcher = fetcher or YtDlpFetcher()
        self.audio_only = audio_only
        self.quality = Quality(quality)
        self.download_cover = download_cover
        self.http_timeout = http_timeout
        self.http_retries = http_retries
        self._client = client

    def resolve(self, input_spec: str, cache_dir: str | Path) -> Path:
        """
        Return a local path for ``input_spec``.

        Raises:
            UnreadableInputError: Local input missing or unreadable
            RemoteResolutionError: Remote metadata or format lookup failed
            DownloadError: Remote media could not be downloaded
        """
        if is_url(input_spec):
            return self._resolve_remote(input_spec, Path(cache_dir))

        path = check_readable_file(input_spec)
        self.events.publish(SourceResolved(path=path, cached=False))
        return path

    def _resolve_remote(self, url: str, cache_dir: Path) -> Path:
        logger.info("Resolving remote source %s", url)
        source = self.fetcher.fetch_info(url, audio_only=self.audio_only, quality=self.quality)

        cache_dir.mkdir(parents=True, exist_ok=True)
        target = cache_dir / source.cache_name

        cached = self.is_cache_valid(target, source)
        self.events.publish(SourceResolved(path=target, cached=cached, source=source))

        if self.download_cover and source.thumbnail_url:
            self._download_cover(source.thumbnail_url, target.with_suffix(".jpg"))

        if cached:
            logger.info("Reusing cached source %s", target)
        else:
            self._download(source, target)
        return target

    # -------------------------------------------------------------------------
    # HTTP helpers
    # -------------------------------------------------------------------------

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.http_timeout, follow_redirects=True)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _head(self, source: RemoteSource) -> httpx.Response:
        @retry_with_backoff(max_retries=self.http_retries, base_delay=0.5, max_delay=5.0)
        def head() -> httpx.Response:
            response = self._http().head(source.content_url, headers=source.http_headers)
            response.raise_for_status()
            return response

        return head()

    def remote_length(self, source: RemoteSource) -> int | None:
        """Remote size in bytes from a HEAD request, or None if unknown."""
        try:
            response = self._head(source)
        except httpx.HTTPError as e:
            logger.debug("HEAD %s failed: %s", source.content_url, e)
            return None

        header = response.headers.get("content-length")
        if header is None or not header.isdigit():
            return None
        return int(header)

    def is_cache_valid(self, target: Path, source: RemoteSource) -> bool:
        """A cached file is valid when its size equals the remote length."""
        if not target.is_file():
            return False

        local_size = target.stat().st_size
        remote_size = self.remote_length(source)
        valid = remote_size is not None and remote_size == local_size
        logger.debug(
            "Cache check %s: local=%d remote=%s valid=%s", target, local_size, remote_size, valid
        )
        return valid

    def _download(self, source: RemoteSource, target: Path) -> None:
        partial = target.with_name(target.name + ".part")
        logger.info("Downloading %s -> %s", source.content_url, target)
        try:
            with self._http().stream(
                "GET", source.content_url, headers=source.http_headers
            ) as response:
                response.raise_for_status()
                header = response.headers.get("content-length", "")
                total = int(header) if header.isdigit() else (source.content_length or 0)
                self.events.publish(DownloadLength(total=total))

                downloaded = 0
                with partial.open("wb") as fh:
                    for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                        fh.write(chunk)
                        downloaded += len(chunk)
                        self.events.publish(
                            DownloadProgress(chunk=len(chunk), downloaded=downloaded, total=total)
                        )
            partial.replace(target)
        except httpx.HTTPStatusError as e:
            partial.unlink(missing_ok=True)
            raise DownloadError(
                f"Download failed with HTTP {e.response.status_code}",
                url=source.content_url,
                status_code=e.response.status_code,
                target_path=target,
            ) from e
        except (httpx.HTTPError, OSError) as e:
            partial.unlink(missing_ok=True)
            raise DownloadError(
                f"Download failed: {e}", url=source.content_url, target_path=target
            ) from e

    def _download_cover(self, thumbnail_url: str, target: Path) -> None:
        try:
            response = self._http().get(thumbnail_url)
            response.raise_for_status()
            target.write_bytes(response.content)
            logger.info("Saved cover to %s", target)
        except (httpx.HTTPError, OSError) as e:
            logger.warning("Unable to download cover: %s", e)
            self.events.publish(WarningIssued(message=f"Unable to download cover: {e}"))
