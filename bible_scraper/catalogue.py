"""Book catalogue: the 66 books and their chapter counts.

Joel and Malachi are split differently between editions. Translations that
follow the Hebrew numbering have Joel 4 / Malachi 3, the English tradition has
Joel 3 / Malachi 4. The ``joel3`` and ``mal4`` flags on a translation select
which one applies.
"""

from dataclasses import dataclass
from typing import List

BASELINE_TOTAL_CHAPTERS = 1189

# (code, English name, Dutch name, chapters)
BOOKS = [
    ("GEN", "Genesis", "Genesis", 50),
    ("EXO", "Exodus", "Exodus", 40),
    ("LEV", "Leviticus", "Leviticus", 27),
    ("NUM", "Numbers", "Numeri", 36),
    ("DEU", "Deuteronomy", "Deuteronomium", 34),
    ("JOS", "Joshua", "Jozua", 24),
    ("JDG", "Judges", "Rechters", 21),
    ("RUT", "Ruth", "Ruth", 4),
    ("1SA", "1 Samuel", "1 Samuel", 31),
    ("2SA", "2 Samuel", "2 Samuel", 24),
    ("1KI", "1 Kings", "1 Koningen", 22),
    ("2KI", "2 Kings", "2 Koningen", 25),
    ("1CH", "1 Chronicles", "1 Kronieken", 29),
    ("2CH", "2 Chronicles", "2 Kronieken", 36),
    ("EZR", "Ezra", "Ezra", 10),
    ("NEH", "Nehemiah", "Nehemia", 13),
    ("EST", "Esther", "Esther", 10),
    ("JOB", "Job", "Job", 42),
    ("PSA", "Psalms", "Psalmen", 150),
    ("PRO", "Proverbs", "Spreuken", 31),
    ("ECC", "Ecclesiastes", "Prediker", 12),
    ("SNG", "Song of Songs", "Hooglied", 8),
    ("ISA", "Isaiah", "Jesaja", 66),
    ("JER", "Jeremiah", "Jeremia", 52),
    ("LAM", "Lamentations", "Klaagliederen", 5),
    ("EZK", "Ezekiel", "Ezechiel", 48),
    ("DAN", "Daniel", "Daniel", 12),
    ("HOS", "Hosea", "Hosea", 14),
    ("JOL", "Joel", "Joel", None),
    ("AMO", "Amos", "Amos", 9),
    ("OBA", "Obadiah", "Obadja", 1),
    ("JON", "Jonah", "Jona", 4),
    ("MIC", "Micah", "Micha", 7),
    ("NAM", "Nahum", "Nahum", 3),
    ("HAB", "Habakkuk", "Habakuk", 3),
    ("ZEP", "Zephaniah", "Sefanja", 3),
    ("HAG", "Haggai", "Haggai", 2),
    ("ZEC", "Zechariah", "Zacharia", 14),
    ("MAL", "Malachi", "Maleachi", None),
    ("MAT", "Matthew", "Matteus", 28),
    ("MRK", "Mark", "Markus", 16),
    ("LUK", "Luke", "Lukas", 24),
    ("JHN", "John", "Johannes", 21),
    ("ACT", "Acts", "Handelingen", 28),
    ("ROM", "Romans", "Romeinen", 16),
    ("1CO", "1 Corinthians", "1 Korinthiers", 16),
    ("2CO", "2 Corinthians", "2 Korinthiers", 13),
    ("GAL", "Galatians", "Galaten", 6),
    ("EPH", "Ephesians", "Efeziers", 6),
    ("PHP", "Philippians", "Filippenzen", 4),
    ("COL", "Colossians", "Kolossenzen", 4),
    ("1TH", "1 Thessalonians", "1 Thessalonicenzen", 5),
    ("2TH", "2 Thessalonians", "2 Thessalonicenzen", 3),
    ("1TI", "1 Timothy", "1 Timoteus", 6),
    ("2TI", "2 Timothy", "2 Timoteus", 4),
    ("TIT", "Titus", "Titus", 3),
    ("PHM", "Philemon", "Filemon", 1),
    ("HEB", "Hebrews", "Hebreeen", 13),
    ("JAS", "James", "Jakobus", 5),
    ("1PE", "1 Peter", "1 Petrus", 5),
    ("2PE", "2 Peter", "2 Petrus", 3),
    ("1JN", "1 John", "1 Johannes", 5),
    ("2JN", "2 John", "2 Johannes", 1),
    ("3JN", "3 John", "3 Johannes", 1),
    ("JUD", "Jude", "Judas", 1),
    ("REV", "Revelation", "Openbaring", 22),
]


@dataclass(frozen=True)
class BookEntry:
    code: str
    index: int
    name: str
    dutch_name: str
    chapters: int
    source_code: str = ""

    def display_name(self, language: str = "EN") -> str:
        return self.dutch_name if language.upper().startswith("NL") else self.name

    def filename(self, chapter: int, ext: str = "html") -> str:
        return f"{self.code}_{chapter:03d}.{ext}"


def build_catalogue(translation) -> List[BookEntry]:
    """Return the 66 books with chapter counts fixed for this translation's edition."""
    catalogue = []
    for i, (code, name, dutch, chapters) in enumerate(BOOKS, start=1):
        if code == "JOL":
            chapters = 3 if translation.joel3 else 4
        elif code == "MAL":
            chapters = 4 if translation.mal4 else 3
        catalogue.append(BookEntry(code=code, index=i, name=name, dutch_name=dutch,
                                   chapters=chapters, source_code=code))
    return catalogue


def total_chapters(catalogue: List[BookEntry]) -> int:
    return sum(book.chapters for book in catalogue)


def iter_chapters(catalogue: List[BookEntry]):
    """Yield (book, chapter) pairs in document order."""
    for book in catalogue:
        for chapter in range(1, book.chapters + 1):
            yield book, chapter
