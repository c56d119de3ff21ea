"""Data models for jobs, progress and extracted content."""

import dataclasses
import random
import string
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from .errors import AlreadyTerminal, InvalidOption


class ProcessingMode(str, Enum):
    FETCH_ONLY = "fetch-only"
    TEXT = "fetch-and-assemble-text"
    STRUCTURED = "fetch-and-assemble-structured"
    BOTH = "both"

    @classmethod
    def parse(cls, value) -> "ProcessingMode":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        key = MODE_ALIASES.get(key, key)
        for mode in cls:
            if mode.value == key:
                return mode
        raise InvalidOption(f"Unknown processing mode: {value}")

    @property
    def wants_text(self) -> bool:
        return self in (ProcessingMode.TEXT, ProcessingMode.BOTH)

    @property
    def wants_structured(self) -> bool:
        return self in (ProcessingMode.STRUCTURED, ProcessingMode.BOTH)


# Names used by the original web front-end
MODE_ALIASES = {
    "download-only": "fetch-only",
    "full": "fetch-and-assemble-text",
    "text": "fetch-and-assemble-text",
    "json": "fetch-and-assemble-structured",
    "structured": "fetch-and-assemble-structured",
}


class SpeedPreference(str, Enum):
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"

    @classmethod
    def parse(cls, value) -> "SpeedPreference":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key == "fast":
            key = "aggressive"
        for speed in cls:
            if speed.value == key:
                return speed
        raise InvalidOption(f"Unknown speed preference: {value}")


class JobStatus(str, Enum):
    INITIALIZING = "initializing"
    FETCHING = "fetching"
    CONVERTING = "converting"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED})

ALLOWED_TRANSITIONS = {
    JobStatus.INITIALIZING: {JobStatus.FETCHING, JobStatus.CANCELLING, JobStatus.FAILED},
    JobStatus.FETCHING: {JobStatus.CONVERTING, JobStatus.COMPLETED, JobStatus.CANCELLING,
                         JobStatus.FAILED},
    JobStatus.CONVERTING: {JobStatus.COMPLETED, JobStatus.CANCELLING, JobStatus.FAILED},
    JobStatus.CANCELLING: {JobStatus.CANCELLED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
    JobStatus.CANCELLED: set(),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FetchError:
    message: str
    kind: str = "NetworkError"
    document: Optional[str] = None  # None for pipeline-wide errors
    chapter: Optional[int] = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "book": self.document,
            "chapter": self.chapter,
            "kind": self.kind,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ContentUnit:
    book_index: int
    chapter: int
    verse: int
    text: str

    @property
    def key(self) -> str:
        return f"{{{self.book_index:02d}{self.chapter:03d}{self.verse:03d}}}"

    def to_dict(self) -> dict:
        return {
            "book": self.book_index,
            "chapter": self.chapter,
            "verse": self.verse,
            "text": self.text,
        }


@dataclass(frozen=True)
class FetchResult:
    book_code: str
    book_name: str
    chapter: int
    outcome: str  # success, skipped
    latency: float = 0.0
    path: Optional[str] = None


@dataclass
class Progress:
    status: JobStatus = JobStatus.INITIALIZING
    current_document: str = ""
    current_chapter: int = 0
    completed: int = 0
    total: int = 0
    percentage: int = 0
    message: str = "Initializing download..."
    errors: List[FetchError] = field(default_factory=list)
    started_at: datetime = field(default_factory=utcnow)
    estimated_completion: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    def set_completed(self, completed: int):
        self.completed = completed
        self.percentage = round(100 * completed / self.total) if self.total else 0

    def copy(self) -> "Progress":
        return dataclasses.replace(self, errors=list(self.errors))

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "currentBook": self.current_document,
            "currentChapter": self.current_chapter,
            "completedChapters": self.completed,
            "totalChapters": self.total,
            "percentage": self.percentage,
            "message": self.message,
            "errors": [e.to_dict() for e in self.errors],
            "startTime": self.started_at.isoformat(),
            "estimatedCompletion": (self.estimated_completion.isoformat()
                                    if self.estimated_completion else None),
            "endTime": self.ended_at.isoformat() if self.ended_at else None,
        }


def new_job_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"download_{int(time.time() * 1000)}_{suffix}"


class Job:
    """One pipeline run for one translation.

    Status changes go through a lock so a cancel request coming from the API
    thread cannot interleave with the pipeline's own transitions.
    """

    def __init__(self, translation, mode: ProcessingMode, speed: SpeedPreference,
                 job_id: Optional[str] = None):
        self.id = job_id or new_job_id()
        self.translation = translation
        self.mode = mode
        self.speed = speed
        self.progress = Progress()
        self.cancel_requested = False
        self.artifacts: List[str] = []
        self._lock = threading.Lock()

    @property
    def status(self) -> JobStatus:
        return self.progress.status

    @property
    def is_terminal(self) -> bool:
        return self.progress.status.is_terminal

    def _transition(self, status: JobStatus, message: Optional[str] = None):
        current = self.progress.status
        if status not in ALLOWED_TRANSITIONS[current]:
            raise ValueError(f"Illegal job transition {current.value} -> {status.value}")
        self.progress.status = status
        if message is not None:
            self.progress.message = message
        if status.is_terminal:
            self.progress.ended_at = utcnow()

    def advance(self, status: JobStatus, message: Optional[str] = None) -> bool:
        """Move to a non-cancel status. Returns False if a cancel got there first."""
        with self._lock:
            if self.cancel_requested:
                return False
            self._transition(status, message)
            return True

    def request_cancel(self):
        with self._lock:
            if self.is_terminal:
                raise AlreadyTerminal(
                    f"Cannot cancel download with status: {self.progress.status.value}"
                )
            self.cancel_requested = True
            if self.progress.status != JobStatus.CANCELLING:
                self._transition(JobStatus.CANCELLING, "Cancelling download...")

    def finish_cancelled(self):
        with self._lock:
            self._transition(JobStatus.CANCELLED, "Download cancelled")

    def fail(self, message: str, error: Optional[FetchError] = None):
        with self._lock:
            if error is not None:
                self.progress.errors.append(error)
            self._transition(JobStatus.FAILED, message)

    def update(self, **fields):
        with self._lock:
            for name, value in fields.items():
                setattr(self.progress, name, value)

    def record(self, completed: Optional[int] = None, errors: Optional[List[FetchError]] = None,
               **fields):
        """Fold one batch into progress in a single locked step."""
        with self._lock:
            if completed is not None:
                self.progress.set_completed(completed)
            if errors:
                self.progress.errors.extend(errors)
            for name, value in fields.items():
                setattr(self.progress, name, value)

    def snapshot(self) -> Progress:
        with self._lock:
            return self.progress.copy()

    def to_dict(self) -> dict:
        progress = self.snapshot()
        return {
            "downloadId": self.id,
            "translationId": self.translation.code,
            "mode": self.mode.value,
            "speed": self.speed.value,
            "status": progress.status.value,
            "artifacts": list(self.artifacts),
            "progress": progress.to_dict(),
        }
