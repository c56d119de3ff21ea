"""basisbijbel.nl: plain HTML pages with verse numbers inline in the text."""

from urllib.parse import quote

from ..extractor import HeuristicExtractor
from .base import BaseSource


class BasisBijbelSource(BaseSource):
    name = "basisbijbel.nl"
    base_url = "https://www.basisbijbel.nl"
    url_template = "{base}/boek/{book}/{chapter}"
    payload_ext = "html"
    min_delay = 0.3
    concurrency = {"conservative": 1, "balanced": 2, "aggressive": 4}

    def make_extractor(self):
        return HeuristicExtractor()

    def build_url(self, translation, book, chapter):
        return self.url_template.format(base=self.base_url, book=quote(book.name.lower()),
                                        chapter=chapter)
