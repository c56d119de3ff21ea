"""Build the .bible text file and the per-book JSON export from raw payloads.

.bible layout::

    {
      "long name": "King James Version",
      ...
    }
    ~~~~
    {01001001} {In the beginning God created the heaven and the earth.}
    {01001002} {And the earth was without form, and void; ...}

Keys are book (2 digits), chapter (3) and verse (3). A chapter that is missing
or cannot be parsed gets a single ``{%empty%}`` line for verse 1.
"""

import json
import logging
import os
from typing import Dict, List, Tuple

from .catalogue import BookEntry, iter_chapters
from .errors import ExtractionError
from .models import ContentUnit, FetchError
from .sources.base import BaseSource

logger = logging.getLogger("bible_scraper")

SEPARATOR = "~~~~"
EMPTY_MARKER = "%empty%"


def bible_header(translation) -> dict:
    return {
        "long name": translation.full_name,
        "short name": translation.short_name,
        "sheet name": translation.sheet_name,
        "license": translation.license,
        "comment": translation.comment or "",
        "language": translation.language,
    }


def format_unit(unit: ContentUnit) -> str:
    return f"{unit.key} {{{unit.text}}}"


def placeholder_line(book: BookEntry, chapter: int) -> str:
    return f"{{{book.index:02d}{chapter:03d}001}} {{{EMPTY_MARKER}}}"


def read_chapter(source: BaseSource, raw_dir: str, book: BookEntry,
                 chapter: int) -> List[ContentUnit]:
    """Extract one chapter's verses. Raises ExtractionError, including for missing files."""
    path = source.payload_path(raw_dir, book, chapter)
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            payload = f.read()
    except FileNotFoundError as e:
        raise ExtractionError(f"No downloaded page for {book.name} {chapter}") from e
    except OSError as e:
        raise ExtractionError(f"Could not read {path}: {e}") from e

    units = source.extract(payload, book, chapter)
    return sorted(units, key=lambda u: u.verse)


def _extraction_error(book: BookEntry, chapter: int, error: Exception) -> FetchError:
    return FetchError(message=str(error), kind=ExtractionError.kind,
                      document=book.name, chapter=chapter)


def build_bible_text(translation, catalogue: List[BookEntry], source: BaseSource,
                     raw_dir: str) -> Tuple[str, List[FetchError]]:
    lines = [json.dumps(bible_header(translation), indent=2, ensure_ascii=False), SEPARATOR]
    errors: List[FetchError] = []

    for book, chapter in iter_chapters(catalogue):
        try:
            units = read_chapter(source, raw_dir, book, chapter)
        except ExtractionError as e:
            logger.warning(f"[{translation.code}] {book.name} {chapter}: {e}")
            errors.append(_extraction_error(book, chapter, e))
            lines.append(placeholder_line(book, chapter))
            continue
        lines.extend(format_unit(u) for u in units)

    return "\n".join(lines), errors


def write_bible_file(translation, text: str, bible_dir: str) -> str:
    os.makedirs(bible_dir, exist_ok=True)
    path = os.path.join(bible_dir, f"{translation.short_name}.bible")
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    logger.info(f"[{translation.code}] Created .bible file: {path}")
    return path


def build_json_documents(translation, catalogue: List[BookEntry], source: BaseSource,
                         raw_dir: str) -> Tuple[Dict[str, dict], dict, List[FetchError]]:
    """Return ({book code: book document}, index, errors) in catalogue order."""
    books: Dict[str, dict] = {}
    errors: List[FetchError] = []
    index_entries = []

    for book in catalogue:
        chapters: Dict[str, list] = {}
        for chapter in range(1, book.chapters + 1):
            try:
                units = read_chapter(source, raw_dir, book, chapter)
            except ExtractionError as e:
                logger.warning(f"[{translation.code}] {book.name} {chapter}: {e}")
                errors.append(_extraction_error(book, chapter, e))
                continue
            chapters[str(chapter)] = [u.to_dict() for u in units]

        if not chapters:
            continue

        books[book.code] = {
            "source": source.name,
            "translation": translation.full_name,
            "book": book.display_name(translation.language),
            "book_code": book.code,
            "book_index": book.index,
            "chapters": chapters,
        }
        index_entries.append({
            "code": book.code,
            "name": book.display_name(translation.language),
            "chapters": len(chapters),
            "source": source.name,
        })

    index = {
        "translation": translation.code,
        "full_name": translation.full_name,
        "source": source.name,
        "books": index_entries,
    }
    return books, index, errors


def write_json_export(translation, books: Dict[str, dict], index: dict, json_dir: str) -> str:
    out_dir = os.path.join(json_dir, translation.code)
    os.makedirs(out_dir, exist_ok=True)

    for code, document in books.items():
        with open(os.path.join(out_dir, f"{code}.json"), "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)

    with open(os.path.join(out_dir, "index.json"), "w", encoding="utf-8") as f:
        json.dump(index, f, indent=2, ensure_ascii=False)

    logger.info(f"[{translation.code}] Wrote {len(books)} book files to {out_dir}")
    return out_dir
