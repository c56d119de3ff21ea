"""Source registry."""

from ..errors import ConfigurationError
from .base import BaseSource
from .basisbijbel import BasisBijbelSource
from .bible_com import BibleComSource
from .debijbel import DeBijbelSource

ALL_SOURCES = {
    "bible.com": BibleComSource,
    "debijbel.nl": DeBijbelSource,
    "basisbijbel.nl": BasisBijbelSource,
}


def get_source(name: str) -> BaseSource:
    source_cls = ALL_SOURCES.get(name)
    if source_cls is None:
        raise ConfigurationError(f"Unknown source: {name}")
    return source_cls()
