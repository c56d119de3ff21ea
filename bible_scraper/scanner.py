"""Resume support: classify already-downloaded chapter payloads.

A payload counts as valid when it is big enough, looks like a real page (or a
JSON document), and is not a short error page. Invalid files are deleted so
the next fetch pass downloads them again.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Set, Tuple

from .catalogue import BookEntry, iter_chapters

logger = logging.getLogger("bible_scraper")

MIN_PAYLOAD_BYTES = 100
# Error keywords only count on pages shorter than this, long chapters can
# legitimately contain the word "error"
SHORT_PAGE_CHARS = 1000

ERROR_INDICATORS = (
    "error",
    "not found",
    "404",
    "access denied",
    "forbidden",
    "service unavailable",
    "internal server error",
)

MARKUP_MARKERS = ("<html", "<!doctype")


@dataclass
class ScanResult:
    valid: int = 0
    invalid: int = 0
    missing: int = 0
    valid_keys: Set[Tuple[str, int]] = field(default_factory=set)


def looks_valid(content: str) -> bool:
    lowered = content.lower()
    stripped = content.lstrip()

    well_formed = any(marker in lowered for marker in MARKUP_MARKERS)
    structured = stripped.startswith("{") or stripped.startswith("[")
    if not (well_formed or structured):
        return False

    if len(lowered) < SHORT_PAGE_CHARS and any(ind in lowered for ind in ERROR_INDICATORS):
        return False

    return True


def is_valid_payload(path: str) -> bool:
    try:
        if not os.path.exists(path):
            return False

        size = os.path.getsize(path)
        if size < MIN_PAYLOAD_BYTES:
            logger.warning(f"File {path} is too small ({size} bytes), will re-download")
            return False

        with open(path, "r", encoding="utf-8", errors="replace") as f:
            content = f.read()

        if not looks_valid(content):
            logger.warning(f"File {path} does not look like a chapter page, will re-download")
            return False

        return True
    except OSError as e:
        logger.warning(f"Error checking file {path}: {e}")
        return False


def scan_existing(catalogue: List[BookEntry], raw_dir: str, ext: str = "html") -> ScanResult:
    """Classify every chapter payload and delete the invalid ones."""
    result = ScanResult()

    for book, chapter in iter_chapters(catalogue):
        path = os.path.join(raw_dir, book.filename(chapter, ext))

        if is_valid_payload(path):
            result.valid += 1
            result.valid_keys.add((book.code, chapter))
        elif os.path.exists(path):
            result.invalid += 1
            try:
                os.remove(path)
                result.missing += 1
                logger.info(f"Removed invalid file: {path}")
            except OSError as e:
                logger.warning(f"Could not remove invalid file {path}: {e}")
        else:
            result.missing += 1

    logger.info(
        f"Scan of {raw_dir}: {result.valid} valid, {result.invalid} invalid, "
        f"{result.missing} missing"
    )
    return result
