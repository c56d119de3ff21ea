import random
import threading

import httpx
import pytest

from bible_scraper import pipeline as pipeline_module
from bible_scraper.catalogue import BookEntry
from bible_scraper.config import AppConfig
from bible_scraper.translations import get_translation


def chapter_page(book: str, chapter: int, verses: int = 2) -> str:
    """A bible.com style chapter page."""
    spans = "".join(
        f'<span data-usfm="{book}.{chapter}.{v}" class="verse v{v}">'
        f'<span class="label">{v}</span>'
        f'<span class="content">Verse {v} of {book} {chapter}.</span>'
        f"</span>"
        for v in range(1, verses + 1)
    )
    return f'<!DOCTYPE html><html><body><div class="chapter">{spans}</div></body></html>'


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FixedRandom:
    """Jitter-free rng."""

    def uniform(self, a, b):
        return 1.0


class BibleComStub:
    """MockTransport handler serving chapter pages, with per-URL overrides."""

    def __init__(self):
        self.requests = []
        self.responses = {}
        self.on_request = None
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)

        # /bible/1/GEN.1
        ref = request.url.path.rsplit("/", 1)[-1]
        if ref in self.responses:
            override = self.responses[ref]
            if isinstance(override, Exception):
                raise override
            return override
        book, chapter = ref.split(".")
        return httpx.Response(200, text=chapter_page(book, int(chapter)))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


SMALL_CATALOGUE = [
    BookEntry(code="GEN", index=1, name="Genesis", dutch_name="Genesis", chapters=2,
              source_code="GEN"),
    BookEntry(code="EXO", index=2, name="Exodus", dutch_name="Exodus", chapters=1,
              source_code="EXO"),
]


@pytest.fixture
def config(tmp_path):
    return AppConfig(data_dir=str(tmp_path / "data"), log_dir=str(tmp_path / "logs"))


@pytest.fixture
def kjv():
    return get_translation("KJV")


@pytest.fixture
def catalogue():
    return list(SMALL_CATALOGUE)


@pytest.fixture
def small_catalogue(monkeypatch):
    """Run pipelines over three chapters instead of the whole Bible."""
    monkeypatch.setattr(pipeline_module, "build_catalogue", lambda translation: list(SMALL_CATALOGUE))
    return list(SMALL_CATALOGUE)


@pytest.fixture
def stub():
    return BibleComStub()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_pipeline(config, stub, sleeps, clock):
    def _make(**kwargs):
        kwargs.setdefault("sleep", sleeps.append)
        kwargs.setdefault("transport", stub.transport)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("rng", random.Random(7))
        return pipeline_module.Pipeline(config, **kwargs)
    return _make
