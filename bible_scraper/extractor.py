"""Verse extraction from raw chapter payloads.

Three strategies cover the configured sources:

* ``MarkupExtractor`` walks an ordered list of CSS selectors and uses the
  first one that matches anything (bible.com style pages).
* ``JsonExtractor`` reads verses out of a JSON API response.
* ``HeuristicExtractor`` looks for any block whose text starts with a verse
  number. Used for sources without stable markup and as a fallback.

Every strategy raises ``ExtractionError`` instead of returning an empty list,
so the assembler can put a placeholder line in its place.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup

from .catalogue import BookEntry
from .errors import ExtractionError
from .models import ContentUnit

logger = logging.getLogger("bible_scraper")

LEADING_NUMBER = re.compile(r"^\s*\d+\s*")
VERSE_PREFIX = re.compile(r"^\s*\d+\s")
VERSE_SPLIT = re.compile(r"^(\d+)\s+(.*)$", re.DOTALL)
WHITESPACE = re.compile(r"\s+")
DIGITS = re.compile(r"\d+")

MIN_HEURISTIC_LENGTH = 10


def _clean(text: str) -> str:
    return WHITESPACE.sub(" ", text).strip()


def _first_int(text: Optional[str]) -> Optional[int]:
    if not text:
        return None
    match = DIGITS.search(text)
    return int(match.group()) if match else None


def _merge_by_verse(pairs: Sequence[Tuple[int, str]]) -> List[Tuple[int, str]]:
    """Stable-sort by verse number and join fragments that share a number."""
    merged: List[Tuple[int, str]] = []
    for verse, text in sorted(pairs, key=lambda p: p[0]):
        if merged and merged[-1][0] == verse:
            merged[-1] = (verse, f"{merged[-1][1]} {text}")
        else:
            merged.append((verse, text))
    return merged


class Extractor(ABC):
    name = ""

    def extract(self, payload: str, book: BookEntry, chapter: int) -> List[ContentUnit]:
        try:
            pairs = self._parse(payload)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"{self.name} parse failed: {e}") from e

        if not pairs:
            raise ExtractionError(f"No verses found in {book.code} {chapter}")

        return [ContentUnit(book_index=book.index, chapter=chapter, verse=verse, text=text)
                for verse, text in pairs]

    @abstractmethod
    def _parse(self, payload: str) -> List[Tuple[int, str]]:
        """Return ordered (verse, text) pairs."""
        ...


class MarkupExtractor(Extractor):
    name = "markup"

    DEFAULT_STRATEGIES = (
        'span[data-usfm][class*="verse"]',
        "[data-usfm].verse",
        ".verse, [data-verse]",
    )
    LABEL_SELECTOR = '[class*="label"], .verse-number, .label'
    CONTENT_SELECTOR = '[class*="content"], .content'
    NOTE_SELECTOR = '[class*="note"]'

    def __init__(self, strategies: Sequence[str] = DEFAULT_STRATEGIES):
        self.strategies = tuple(strategies)

    def _parse(self, payload: str) -> List[Tuple[int, str]]:
        soup = BeautifulSoup(payload, "html.parser")
        # Footnotes and cross references sit inside verse spans
        for note in soup.select(self.NOTE_SELECTOR):
            note.decompose()

        for selector in self.strategies:
            elements = soup.select(selector)
            if not elements:
                continue
            logger.debug(f"[markup] {len(elements)} matches for {selector!r}")

            pairs = []
            for position, element in enumerate(elements, start=1):
                text = self._verse_text(element)
                if text:
                    pairs.append((self._verse_number(element, position), text))
            return _merge_by_verse(pairs)

        return []

    def _verse_number(self, element, position: int) -> int:
        usfm = element.get("data-usfm")
        if usfm:
            # "GEN.1.3" or "GEN.1.3+GEN.1.4"
            number = _first_int(usfm.split("+")[0].split(".")[-1])
            if number is not None:
                return number

        label = element.select_one(self.LABEL_SELECTOR)
        if label is not None:
            number = _first_int(label.get_text())
            if number is not None:
                return number

        number = _first_int(element.get("data-verse"))
        if number is not None:
            return number

        return position

    def _verse_text(self, element) -> str:
        contents = element.select(self.CONTENT_SELECTOR)
        if contents:
            ids = {id(c) for c in contents}
            outer = [c for c in contents if not any(id(p) in ids for p in c.parents)]
            return _clean(" ".join(c.get_text(" ", strip=True) for c in outer))

        text = element.get_text(" ", strip=True)
        return _clean(LEADING_NUMBER.sub("", text, count=1))


class HeuristicExtractor(Extractor):
    name = "heuristic"

    def _parse(self, payload: str) -> List[Tuple[int, str]]:
        soup = BeautifulSoup(payload, "html.parser")
        candidates = [
            el for el in soup.find_all(["p", "div", "span"])
            if VERSE_PREFIX.match(el.get_text()) and len(el.get_text()) > MIN_HEURISTIC_LENGTH
        ]

        # Keep only the innermost match, a wrapper div would swallow its verses
        ids = {id(el) for el in candidates}
        innermost = [
            el for el in candidates
            if not any(id(d) in ids for d in el.find_all(["p", "div", "span"]))
        ]

        seen = set()
        pairs = []
        for el in innermost:
            match = VERSE_SPLIT.match(el.get_text().strip())
            if not match:
                continue
            verse = int(match.group(1))
            text = _clean(match.group(2))
            if text and verse not in seen:
                seen.add(verse)
                pairs.append((verse, text))

        pairs.sort(key=lambda p: p[0])
        return pairs


class JsonExtractor(Extractor):
    """Reads ``content.verses[*].verse`` / ``.text`` style API responses."""

    name = "json"

    def __init__(self, list_path: Sequence[str] = ("content", "verses"),
                 number_field: str = "verse", text_field: str = "text",
                 fallback: Optional[Extractor] = None):
        self.list_path = tuple(list_path)
        self.number_field = number_field
        self.text_field = text_field
        self.fallback = fallback or HeuristicExtractor()

    def _parse(self, payload: str) -> List[Tuple[int, str]]:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            logger.debug("[json] payload is not JSON, using heuristic fallback")
            return self.fallback._parse(payload)

        items = data
        for key in self.list_path:
            if not isinstance(items, dict):
                raise ExtractionError(f"Missing '{key}' in JSON payload")
            items = items.get(key)
        if not isinstance(items, list):
            raise ExtractionError(f"Expected a list at {'.'.join(self.list_path)}")

        pairs = []
        for item in items:
            verse = _first_int(str(item.get(self.number_field, "")))
            text = str(item.get(self.text_field) or "").strip()
            if verse is not None and text:
                pairs.append((verse, text))
        return _merge_by_verse(pairs)
