"""Abstract base class for all chapter sources."""

import os
from abc import ABC, abstractmethod
from typing import Dict, List

from ..catalogue import BookEntry
from ..extractor import Extractor, HeuristicExtractor
from ..models import ContentUnit


class BaseSource(ABC):
    """One external origin: where chapters live and how to read them back."""

    name: str = ""
    base_url: str = ""
    url_template: str = ""
    payload_ext: str = "html"
    # Seconds between requests this site needs no matter what the throttle learned
    min_delay: float = 0.0
    # Parallel requests per speed preference
    concurrency: Dict[str, int] = {"conservative": 1, "balanced": 2, "aggressive": 3}

    def __init__(self):
        self.extractor: Extractor = self.make_extractor()

    def make_extractor(self) -> Extractor:
        return HeuristicExtractor()

    @abstractmethod
    def build_url(self, translation, book: BookEntry, chapter: int) -> str:
        """Return the chapter URL. Raises ConfigurationError when ids are missing."""
        ...

    def extract(self, payload: str, book: BookEntry, chapter: int) -> List[ContentUnit]:
        return self.extractor.extract(payload, book, chapter)

    def payload_path(self, raw_dir: str, book: BookEntry, chapter: int) -> str:
        return os.path.join(raw_dir, book.filename(chapter, self.payload_ext))

    def workers_for(self, speed: str) -> int:
        return self.concurrency.get(speed, 1)
