"""Job registry and the create / progress / cancel service used by the CLI and API."""

import logging
import threading
from datetime import timedelta
from typing import Dict, List, Optional

from .config import AppConfig
from .errors import JobNotFound, LegalAgreementRequired, UnknownTranslation
from .models import Job, Progress, ProcessingMode, SpeedPreference, utcnow
from .pipeline import Pipeline
from .translations import get_translation

logger = logging.getLogger("bible_scraper")


class JobStore:
    """Thread-safe mapping of job id to Job."""

    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def insert(self, job: Job):
        with self._lock:
            self._jobs[job.id] = job

    def get(self, job_id: str) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFound(f"Download not found: {job_id}")
        return job

    def all(self) -> List[Job]:
        with self._lock:
            return list(self._jobs.values())

    def sweep(self, retention: float) -> int:
        """Drop terminal jobs that ended more than ``retention`` seconds ago."""
        cutoff = utcnow() - timedelta(seconds=retention)
        with self._lock:
            stale = [
                job_id for job_id, job in self._jobs.items()
                if job.is_terminal and job.progress.ended_at and job.progress.ended_at < cutoff
            ]
            for job_id in stale:
                del self._jobs[job_id]
        return len(stale)

    def __len__(self):
        with self._lock:
            return len(self._jobs)


class DownloadService:
    def __init__(self, config: AppConfig, store: Optional[JobStore] = None,
                 pipeline: Optional[Pipeline] = None, background: bool = True):
        self.config = config
        self.store = store if store is not None else JobStore()
        self.pipeline = pipeline or Pipeline(config)
        self.background = background
        self._threads: Dict[str, threading.Thread] = {}

    def create_job(self, translation_code: str, mode="fetch-and-assemble-text", speed=None,
                   legal_agreement: bool = False) -> str:
        translation = get_translation(translation_code)
        if translation is None:
            raise UnknownTranslation(f"Translation not found: {translation_code}")
        if not translation.is_public_domain and not legal_agreement:
            raise LegalAgreementRequired(
                f"Legal agreement required for copyrighted material ({translation.code})"
            )

        job = Job(translation, ProcessingMode.parse(mode),
                  SpeedPreference.parse(speed or self.config.throttle.speed))
        self.store.insert(job)
        logger.info(f"[{job.id}] Created job for {translation.code} "
                    f"({job.mode.value}, {job.speed.value})")

        if self.background:
            thread = threading.Thread(target=self._run_quietly, args=(job,),
                                      name=job.id, daemon=True)
            self._threads[job.id] = thread
            thread.start()
        else:
            self.pipeline.run(job)
        return job.id

    def _run_quietly(self, job: Job):
        # Failures are already on the job's progress; nothing above us to re-raise to.
        try:
            self.pipeline.run(job)
        except Exception:
            logger.exception(f"[{job.id}] Job ended with an error")

    def get_job(self, job_id: str) -> Job:
        return self.store.get(job_id)

    def get_progress(self, job_id: str) -> Progress:
        return self.store.get(job_id).snapshot()

    def cancel(self, job_id: str):
        job = self.store.get(job_id)
        job.request_cancel()
        logger.info(f"[{job.id}] Cancel requested")

    def list_jobs(self) -> List[Job]:
        return self.store.all()

    def cleanup(self, retention: Optional[float] = None) -> int:
        retention = self.config.job_retention if retention is None else retention
        removed = self.store.sweep(retention)
        for job_id in list(self._threads):
            if not self._threads[job_id].is_alive():
                del self._threads[job_id]
        return removed

    def wait(self, job_id: str, timeout: Optional[float] = None) -> bool:
        """Block until a background job's thread finishes. Returns False on timeout."""
        thread = self._threads.get(job_id)
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()
