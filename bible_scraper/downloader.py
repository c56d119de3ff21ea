"""HTTP fetch of single chapters with resume-skip, throttling and typed failures."""

import logging
import os
import tempfile
import threading
import time
from typing import Callable, Optional

import httpx

from .catalogue import BookEntry
from .config import AppConfig
from .errors import (FetchConnectionError, FetchFailure, FetchTimeout, NetworkError, NotFound,
                     RateLimited)
from .models import FetchResult
from .scanner import is_valid_payload
from .sources.base import BaseSource
from .throttle import AdaptiveThrottle

logger = logging.getLogger("bible_scraper")

RATE_LIMIT_PHRASES = ("rate limit", "too many requests")


def _mentions_rate_limit(message: str) -> bool:
    lowered = (message or "").lower()
    return any(phrase in lowered for phrase in RATE_LIMIT_PHRASES)


class Downloader:
    """Fetches chapter pages for one job into its raw payload directory."""

    def __init__(self, config: AppConfig, source: BaseSource, translation, raw_dir: str,
                 throttle: AdaptiveThrottle, sleep: Callable[[float], None] = time.sleep,
                 transport: Optional[httpx.BaseTransport] = None):
        self.config = config
        self.source = source
        self.translation = translation
        self.raw_dir = raw_dir
        self.throttle = throttle
        self.sleep = sleep
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        # Batches call fetch_chapter from several threads at once
        self._client_lock = threading.Lock()

    @property
    def headers(self) -> dict:
        return {
            "User-Agent": self.config.download.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": self.config.download.accept_language,
            "Accept-Encoding": "gzip, deflate",
            "DNT": "1",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
        }

    @property
    def client(self) -> httpx.Client:
        with self._client_lock:
            if self._client is None or self._client.is_closed:
                self._client = httpx.Client(
                    timeout=httpx.Timeout(self.config.download.timeout,
                                          connect=self.config.download.connect_timeout),
                    follow_redirects=True,
                    headers=self.headers,
                    transport=self._transport,
                )
            return self._client

    def close(self):
        with self._client_lock:
            if self._client and not self._client.is_closed:
                self._client.close()

    def fetch_chapter(self, book: BookEntry, chapter: int) -> FetchResult:
        """Fetch one chapter. Returns the result or raises a FetchFailure subclass."""
        path = self.source.payload_path(self.raw_dir, book, chapter)

        if is_valid_payload(path):
            logger.debug(f"[{self.source.name}] Skipping {book.name} {chapter} - already downloaded")
            return FetchResult(book.code, book.name, chapter, "skipped", path=path)

        url = self.source.build_url(self.translation, book, chapter)
        self.sleep(self.throttle.next_delay(self.source.min_delay))

        started = time.monotonic()
        try:
            body = self._get(url)
            self._save(path, body)
        except FetchFailure as e:
            self.throttle.record_failure(e)
            logger.warning(f"[{self.source.name}] {book.name} {chapter}: {e}")
            raise

        latency = time.monotonic() - started
        self.throttle.record_success(latency)
        logger.debug(f"[{self.source.name}] {book.name} {chapter}: {len(body):,} bytes "
                     f"in {latency:.2f}s")
        return FetchResult(book.code, book.name, chapter, "success", latency=latency, path=path)

    def _get(self, url: str) -> bytes:
        try:
            resp = self.client.get(url)
        except httpx.TimeoutException as e:
            raise FetchTimeout(f"Request timeout: {url}") from e
        except (httpx.ConnectError, httpx.ReadError, httpx.WriteError,
                httpx.RemoteProtocolError) as e:
            raise FetchConnectionError(f"Connection error: {e}") from e
        except httpx.HTTPError as e:
            if _mentions_rate_limit(str(e)):
                raise RateLimited(f"Rate limit exceeded: {e}") from e
            raise NetworkError(f"Network error: {e}") from e
        except httpx.InvalidURL as e:
            raise NetworkError(f"Invalid request for {url}: {e}") from e

        if resp.status_code == 429:
            raise RateLimited("Rate limit exceeded (429)", status_code=429)
        if resp.status_code == 404:
            raise NotFound("Chapter not found (404)", status_code=404)
        if not resp.is_success:
            message = f"HTTP {resp.status_code}: {resp.reason_phrase}"
            if _mentions_rate_limit(resp.reason_phrase):
                raise RateLimited(message, status_code=resp.status_code)
            raise NetworkError(message, status_code=resp.status_code)

        return resp.content

    def _save(self, path: str, body: bytes):
        # Write next to the target and rename, so an interrupted run never
        # leaves a truncated page that the resume scan would accept
        tmp_path = None
        try:
            directory = os.path.dirname(path)
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".", suffix=".part")
            with os.fdopen(fd, "wb") as f:
                f.write(body)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise NetworkError(f"Could not save {path}: {e}") from e
