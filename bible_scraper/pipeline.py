"""Batch scheduler: drives one job from scan through fetch to assembly.

Chapters are fetched in batches of N parallel requests, N coming from the
source's table for the job's speed preference. Progress is only written here,
once per batch, after every fetch of the batch has returned.
"""

import logging
import os
import random
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import httpx

from .assembler import build_bible_text, build_json_documents, write_bible_file, write_json_export
from .catalogue import BookEntry, build_catalogue, iter_chapters, total_chapters
from .config import AppConfig
from .downloader import Downloader
from .errors import ConfigurationError
from .models import FetchError, FetchResult, Job, JobStatus, utcnow
from .scanner import scan_existing
from .sources import get_source
from .sources.base import BaseSource
from .throttle import AdaptiveThrottle

logger = logging.getLogger("bible_scraper")

ETA_MIN_COMPLETED = 5


@dataclass
class BatchOutcome:
    size: int
    results: List[FetchResult] = field(default_factory=list)
    errors: List[FetchError] = field(default_factory=list)
    fatal: Optional[ConfigurationError] = None

    @property
    def failed(self) -> int:
        return len(self.errors) + (1 if self.fatal else 0)

    @property
    def all_skipped(self) -> bool:
        return bool(self.results) and not self.failed and all(
            r.outcome == "skipped" for r in self.results)


class Pipeline:
    def __init__(self, config: AppConfig, sleep: Callable[[float], None] = time.sleep,
                 transport: Optional[httpx.BaseTransport] = None,
                 clock: Callable[[], float] = time.monotonic,
                 rng: Optional[random.Random] = None):
        self.config = config
        self.sleep = sleep
        self.transport = transport
        self.clock = clock
        self.rng = rng
        self.recovery_pause = config.throttle.recovery_pause
        self.failure_ratio = config.throttle.failure_ratio

    def raw_dir_for(self, translation) -> str:
        return os.path.join(self.config.html_dir, translation.code)

    def run(self, job: Job):
        try:
            self._run(job)
        except Exception as e:
            logger.error(f"[{job.id}] Download failed for {job.translation.code}: {e}")
            if not job.is_terminal:
                job.fail(f"Download failed: {e}",
                         FetchError(message=str(e), kind=getattr(e, "kind", type(e).__name__)))
            raise
        return job.snapshot()

    def _run(self, job: Job):
        translation = job.translation
        logger.info(f"[{job.id}] Starting {translation.code} in {job.mode.value} mode "
                    f"({job.speed.value})")

        if not job.advance(JobStatus.FETCHING, "Starting Bible download..."):
            job.finish_cancelled()
            return

        source = get_source(translation.source)
        catalogue = build_catalogue(translation)
        raw_dir = self.raw_dir_for(translation)
        os.makedirs(raw_dir, exist_ok=True)

        job.update(total=total_chapters(catalogue))
        scan = scan_existing(catalogue, raw_dir, source.payload_ext)
        message = "Starting Bible download..."
        if scan.valid:
            message = (f"Found {scan.valid} existing valid files, "
                       f"{scan.invalid} files need re-downloading...")
        job.record(completed=scan.valid, message=message)

        throttle = AdaptiveThrottle.for_speed(job.speed.value, clock=self.clock, rng=self.rng)
        downloader = Downloader(self.config, source, translation, raw_dir, throttle,
                                sleep=self.sleep, transport=self.transport)
        try:
            self._fetch_all(job, catalogue, source, downloader, throttle, scan.valid_keys,
                            scan.valid)
        finally:
            downloader.close()
        logger.info(f"[{job.id}] Fetch phase done, throttle state {throttle.snapshot()}")

        if job.cancel_requested:
            job.finish_cancelled()
            logger.info(f"[{job.id}] Download cancelled")
            return

        if job.mode.wants_text or job.mode.wants_structured:
            if not job.advance(JobStatus.CONVERTING, "Converting downloaded chapters..."):
                job.finish_cancelled()
                return
            self._assemble(job, catalogue, source, raw_dir)

        if job.advance(JobStatus.COMPLETED, "Download completed successfully"):
            logger.info(f"[{job.id}] Completed with {len(job.snapshot().errors)} errors")
        else:
            job.finish_cancelled()

    def _fetch_all(self, job: Job, catalogue: List[BookEntry], source: BaseSource,
                   downloader: Downloader, throttle: AdaptiveThrottle, valid_keys, completed: int):
        pending = [(book, chapter) for book, chapter in iter_chapters(catalogue)
                   if (book.code, chapter) not in valid_keys]
        workers = source.workers_for(job.speed.value)
        logger.info(f"[{job.id}] {len(pending)} chapters to fetch, {workers} at a time")

        for start in range(0, len(pending), workers):
            if job.cancel_requested:
                return

            batch = pending[start:start + workers]
            outcome = self.run_batch(downloader, batch)
            completed += len(outcome.results)

            last_book, last_chapter = batch[-1]
            fields = {
                "current_document": last_book.name,
                "current_chapter": last_chapter,
                "message": f"Downloading {last_book.name} {last_chapter}...",
            }
            if completed > ETA_MIN_COMPLETED:
                progress = job.snapshot()
                elapsed = utcnow() - progress.started_at
                remaining = progress.total - completed
                fields["estimated_completion"] = utcnow() + (elapsed / completed) * remaining
            job.record(completed=completed, errors=outcome.errors, **fields)

            if outcome.fatal is not None:
                raise outcome.fatal

            if start + workers < len(pending):
                pause = self.choose_pause(outcome, throttle, source.min_delay)
                if pause > 0:
                    self.sleep(pause)

    def run_batch(self, downloader: Downloader, batch: List[Tuple[BookEntry, int]]) -> BatchOutcome:
        """Fetch every chapter of the batch in parallel and wait for all of them."""
        outcome = BatchOutcome(size=len(batch))

        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = {executor.submit(downloader.fetch_chapter, book, chapter): (book, chapter)
                       for book, chapter in batch}
            for future in as_completed(futures):
                book, chapter = futures[future]
                try:
                    outcome.results.append(future.result())
                except ConfigurationError as e:
                    if outcome.fatal is None:
                        outcome.fatal = e
                except Exception as e:
                    outcome.errors.append(FetchError(
                        message=str(e), kind=getattr(e, "kind", type(e).__name__),
                        document=book.name, chapter=chapter,
                    ))

        return outcome

    def choose_pause(self, outcome: BatchOutcome, throttle: AdaptiveThrottle,
                     source_floor: float = 0.0) -> float:
        """Seconds to wait before the next batch."""
        if outcome.size and outcome.failed / outcome.size > self.failure_ratio:
            logger.warning(f"{outcome.failed}/{outcome.size} fetches failed, pausing "
                           f"{self.recovery_pause}s")
            return self.recovery_pause
        if outcome.all_skipped:
            return 0.0
        return throttle.next_delay(source_floor)

    def _assemble(self, job: Job, catalogue: List[BookEntry], source: BaseSource, raw_dir: str):
        translation = job.translation

        if job.mode.wants_text:
            job.update(message="Converting HTML files to .bible format...")
            text, errors = build_bible_text(translation, catalogue, source, raw_dir)
            path = write_bible_file(translation, text, self.config.bible_dir)
            job.record(errors=errors)
            job.artifacts.append(path)

        if job.mode.wants_structured:
            job.update(message="Exporting chapters to JSON...")
            books, index, errors = build_json_documents(translation, catalogue, source, raw_dir)
            out_dir = write_json_export(translation, books, index, self.config.json_dir)
            job.record(errors=errors)
            job.artifacts.append(out_dir)
