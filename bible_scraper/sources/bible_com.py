"""Bible.com (YouVersion) chapter pages.

Chapters are addressed by version id and USFM book code, e.g.
https://www.bible.com/bible/1/GEN.1 for KJV Genesis 1. Verse spans carry a
``data-usfm`` attribute ("GEN.1.3"), with the verse label and the verse text
in child spans. Older page layouts used ``.verse`` / ``data-verse`` instead.
"""

from ..errors import ConfigurationError
from ..extractor import MarkupExtractor
from .base import BaseSource


class BibleComSource(BaseSource):
    name = "bible.com"
    base_url = "https://www.bible.com"
    url_template = "{base}/bible/{id}/{book}.{chapter}"
    payload_ext = "html"
    min_delay = 0.1
    concurrency = {"conservative": 2, "balanced": 4, "aggressive": 6}

    def make_extractor(self):
        return MarkupExtractor(strategies=(
            'span[data-usfm][class*="verse"]',
            "[data-usfm].verse",
            ".verse, [data-verse]",
        ))

    def build_url(self, translation, book, chapter):
        if not translation.source_id:
            raise ConfigurationError(f"Missing bible.com ID for {translation.code}")
        return self.url_template.format(base=self.base_url, id=translation.source_id,
                                        book=book.source_code or book.code, chapter=chapter)
