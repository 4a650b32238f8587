"""
Archive download over HTTP(S).

Downloads are streamed into memory with optional progress reporting. There
is no retry and no resume: any transport error or non-200 status fails the
download.
"""

import io
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from tfbin.core.exceptions import DownloadError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
CHUNK_SIZE = 8192


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second

    def __str__(self) -> str:
        return format_progress(self)


def fetch_archive(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    session: Optional[requests.Session] = None,
) -> bytes:
    """
    Download ``url`` and return the response body.

    Args:
        url: URL to download from
        timeout: Connect/read timeout in seconds
        progress_callback: Optional callback for progress updates
        session: Optional requests session to reuse

    Returns:
        Response body bytes

    Raises:
        DownloadError: On transport error or a non-200 status
        ValueError: If URL is empty

    Example:
        >>> data = fetch_archive("https://example.com/provider.zip")
    """
    if not url:
        raise ValueError("URL cannot be empty")

    http = session or requests
    logger.info(f"Downloading {url}")

    try:
        response = http.get(url, stream=True, timeout=timeout, allow_redirects=True)
    except RequestException as e:
        raise DownloadError(f"GET of {url} failed: {e}") from e

    with response:
        if response.status_code != 200:
            raise DownloadError(
                f"GET of {url} had a non-200 result: {response.status_code}"
            )

        content_length = response.headers.get("content-length")
        try:
            total_size = int(content_length) if content_length else 0
        except ValueError:
            logger.debug(f"Ignoring invalid Content-Length {content_length!r}")
            total_size = 0

        buffer = io.BytesIO()
        downloaded = 0
        reported = 0
        start_time = time.time()
        last_progress_time = start_time

        def report(current_time: float):
            elapsed = current_time - start_time
            progress_callback(
                DownloadProgress(
                    bytes_downloaded=downloaded,
                    total_bytes=total_size if total_size > 0 else downloaded,
                    percentage=(downloaded / total_size * 100)
                    if total_size > 0
                    else 0,
                    speed_bps=downloaded / elapsed if elapsed > 0 else 0,
                )
            )

        try:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                buffer.write(chunk)
                downloaded += len(chunk)

                # Report progress (max once per 0.5 seconds to avoid spam)
                current_time = time.time()
                if progress_callback and (
                    current_time - last_progress_time >= 0.5
                    or downloaded == total_size
                ):
                    report(current_time)
                    reported = downloaded
                    last_progress_time = current_time
        except RequestException as e:
            raise DownloadError(f"Error reading body from request to {url}: {e}") from e

    # Final update when the size was unknown or the last chunk was throttled
    if progress_callback and downloaded and reported != downloaded:
        report(time.time())

    logger.debug(f"Downloaded {downloaded} bytes from {url}")
    return buffer.getvalue()


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.percentage > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s"
        )
    return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"
