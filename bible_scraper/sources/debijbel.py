"""debijbel.nl passage API (Nederlands Bijbelgenootschap).

Returns JSON shaped like ``{"content": {"verses": [{"verse": 1, "text": "..."}]}}``.
When the API answers with an HTML page instead, the heuristic extractor is used.
"""

import re

from ..errors import ConfigurationError
from ..extractor import HeuristicExtractor, JsonExtractor
from .base import BaseSource


class DeBijbelSource(BaseSource):
    name = "debijbel.nl"
    base_url = "https://www.debijbel.nl"
    url_template = "{base}/api/bible/passage?identifier={book}{chapter}&language=nl&version={version}"
    payload_ext = "json"
    min_delay = 0.5
    concurrency = {"conservative": 1, "balanced": 2, "aggressive": 3}

    def make_extractor(self):
        return JsonExtractor(list_path=("content", "verses"), number_field="verse",
                             text_field="text", fallback=HeuristicExtractor())

    def build_url(self, translation, book, chapter):
        version = re.sub(r"[^a-z]", "", translation.short_name.lower())
        if not version:
            raise ConfigurationError(f"Missing debijbel.nl version for {translation.code}")
        return self.url_template.format(base=self.base_url, book=book.source_code or book.code,
                                        chapter=chapter, version=version)
