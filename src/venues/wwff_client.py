"""
HTTP client for the WWFF directory download.

**Conceptual**: This module fetches the published directory CSV
(https://wwff.co/wwff-data/wwff_directory.csv) and hands the raw bytes to the
decoder. It knows about HTTP (headers, status codes, retries, conditional
requests) and nothing about the CSV layout: parsing is io.py's job.

**Conditional download**: After a successful fetch the client remembers the
ETag and Last-Modified response headers and sends them back as If-None-Match
and If-Modified-Since. A 304 Not Modified answer makes fetch() return None,
so a long-running process can poll for updates without re-downloading a
directory that hasn't changed.

**Compression**: requests negotiates gzip, deflate and brotli (the brotli
codec is a declared dependency) and decompresses transparently.

**Retries**: Connection errors, timeouts, 429 and 5xx responses are retried
with exponential backoff (backoff_seconds * 2**attempt) up to
retry_attempts total attempts.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

import requests

from src.config.settings import WwffDownloadSettings
from src.data.decoder import DirectorySession
from src.data.io import from_bytes
from src.utils.time import Clock, RealClock

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class WwffClientError(Exception):
    """
    Base exception for directory download errors.

    Callers can catch WwffClientError to handle every download failure, or a
    subclass for finer handling.
    """
    pass


class WwffNotFoundError(WwffClientError):
    """
    Raised when the directory URL answers 404 Not Found.

    **Recovery**: Check WWFF_DIRECTORY_URL; the file may have moved.
    """
    pass


class WwffRateLimitError(WwffClientError):
    """Raised when the server keeps answering 429 Too Many Requests."""
    pass


class WwffServerError(WwffClientError):
    """Raised when the server keeps answering with a 5xx error."""
    pass


@dataclass(frozen=True)
class DirectoryDownload:
    """
    Raw directory bytes plus the metadata of the response they came from.

    Attributes:
        content: CSV body, already decompressed.
        url: URL the directory was fetched from.
        fetched_at: When the download completed (from the client's clock).
        etag: ETag response header, if any.
        last_modified: Last-Modified response header, if any.
    """
    content: bytes
    url: str
    fetched_at: datetime
    etag: Optional[str] = None
    last_modified: Optional[str] = None

    def open(self, date_format: Optional[str] = None) -> DirectorySession:
        """Open a decoding session over the downloaded bytes."""
        return from_bytes(self.content, date_format=date_format)

    def save(self, path: Union[Path, str]) -> Path:
        """
        Write the raw CSV bytes to ``path``, creating parent directories.

        Returns:
            The path written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.content)
        return target


class WwffDirectoryClient:
    """
    Thin HTTP client for the WWFF directory.

    **Responsibilities**:
      - Send GET requests with User-Agent and timeout
      - Retry transient failures with exponential backoff
      - Send conditional request headers after the first download
      - Map HTTP errors to descriptive exceptions

    **NOT responsible for**:
      - Parsing the CSV (DirectoryDownload.open / src.data.io)
      - Persisting parsed results

    **Example usage**:
        >>> with WwffDirectoryClient(get_settings().download) as client:
        ...     download = client.fetch()
        ...     for result in download.open():
        ...         print(result)
        ...     # Later: returns None unless the directory changed
        ...     update = client.fetch()
    """

    def __init__(
        self,
        settings: Optional[WwffDownloadSettings] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Download configuration (URL, timeout, retry policy).
                      Defaults to WwffDownloadSettings() (official URL).
            clock: Time source for DirectoryDownload.fetched_at.
                   Defaults to RealClock().
        """
        self.settings = settings or WwffDownloadSettings()
        self.clock = clock or RealClock()
        self.session = requests.Session()

        # Validators from the last successful download
        self.etag: Optional[str] = None
        self.last_modified: Optional[str] = None

        self.session.headers.update({
            "User-Agent": self.settings.user_agent,
            "Accept": "text/csv, */*;q=0.1",
        })

    def fetch(self) -> Optional[DirectoryDownload]:
        """
        Download the directory, or return None if it hasn't changed.

        **HTTP request details**:
          - Method: GET {directory_url}
          - Headers: User-Agent, Accept-Encoding (from requests),
            If-None-Match / If-Modified-Since after a previous download
          - Timeout: settings.timeout_seconds

        Returns:
            DirectoryDownload with the raw CSV bytes, or None on 304 Not Modified.

        Raises:
            WwffNotFoundError: 404.
            WwffRateLimitError: 429 after all retries.
            WwffServerError: 5xx after all retries.
            WwffClientError: Other unexpected status codes or network failures.
            requests.Timeout: If every attempt timed out.
        """
        headers: Dict[str, str] = {}

        if self.last_modified:
            logger.debug("Conditional request, Last-Modified was %s", self.last_modified)
            headers["If-Modified-Since"] = self.last_modified

        if self.etag:
            logger.debug("Conditional request, ETag was %s", self.etag)
            headers["If-None-Match"] = self.etag

        response = self._get_with_retry(headers)

        # Not modified since last request
        if response.status_code == 304:
            logger.info("Directory unchanged since last fetch (304 Not Modified)")
            return None

        self._raise_for_status(response)

        self.etag = response.headers.get("ETag")
        self.last_modified = response.headers.get("Last-Modified")

        download = DirectoryDownload(
            content=response.content,
            url=self.settings.directory_url,
            fetched_at=self.clock.now(),
            etag=self.etag,
            last_modified=self.last_modified,
        )
        logger.info(
            "Downloaded WWFF directory from %s (%d bytes)",
            download.url,
            len(download.content),
        )
        return download

    def _get_with_retry(self, headers: Dict[str, str]) -> requests.Response:
        url = self.settings.directory_url
        attempts = self.settings.retry_attempts

        for attempt in range(attempts):
            last_attempt = attempt == attempts - 1
            try:
                response = self.session.get(
                    url,
                    headers=headers,
                    timeout=self.settings.timeout_seconds,
                )
            except requests.Timeout as e:
                if last_attempt:
                    raise requests.Timeout(
                        f"Request to {url} timed out after {self.settings.timeout_seconds}s "
                        f"({attempts} attempts). Check network connection or increase timeout."
                    ) from e
                logger.warning("WWFF directory request timed out on attempt %d", attempt + 1)
            except requests.ConnectionError as e:
                if last_attempt:
                    raise WwffClientError(
                        f"Failed to connect to {url} after {attempts} attempts. "
                        f"Check network connection and WWFF_DIRECTORY_URL."
                    ) from e
                logger.warning("WWFF directory connection error on attempt %d: %s", attempt + 1, e)
            except requests.RequestException as e:
                raise WwffClientError(f"HTTP request failed: {e}") from e
            else:
                if response.status_code not in RETRYABLE_STATUS_CODES or last_attempt:
                    return response
                logger.warning(
                    "WWFF directory returned status %d on attempt %d",
                    response.status_code,
                    attempt + 1,
                )

            sleep_time = self.settings.backoff_seconds * (2 ** attempt)
            time.sleep(sleep_time)

        # retry_attempts >= 1 is enforced by the settings, so the loop returns or raises
        raise WwffClientError(f"No attempt was made to fetch {url}")

    def _raise_for_status(self, response: requests.Response) -> None:
        status = response.status_code

        if status == 404:
            raise WwffNotFoundError(
                f"Directory not found at {self.settings.directory_url}. Response: {response.text}"
            )

        if status == 429:
            raise WwffRateLimitError(
                f"Rate limit exceeded. Slow down requests. Response: {response.text}"
            )

        if status >= 500:
            raise WwffServerError(
                f"WWFF server error (status {status}). Response: {response.text}"
            )

        if 400 <= status < 500:
            raise WwffClientError(
                f"Client error (status {status}). Response: {response.text}"
            )

        if status != 200:
            raise WwffClientError(f"HTTP response returned status code {status}")

    def close(self):
        """Close the HTTP session and release pooled connections."""
        self.session.close()

    def __enter__(self):
        """Enable context manager support (with statement)."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Clean up session when exiting context manager."""
        self.close()
        return False  # Don't suppress exceptions


def download_directory(
    settings: Optional[WwffDownloadSettings] = None,
    date_format: Optional[str] = None,
) -> DirectorySession:
    """
    Download the directory once and open a decoding session over it.

    Raises:
        WwffClientError: Download failed (see WwffDirectoryClient.fetch).
        MissingRequiredColumnError: Downloaded header lacks a mandatory column.
    """
    with WwffDirectoryClient(settings) as client:
        download = client.fetch()
    if download is None:
        raise WwffClientError("Server answered 304 Not Modified to an unconditional request")
    return download.open(date_format=date_format)
