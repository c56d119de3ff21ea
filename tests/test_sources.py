import pytest

from bible_scraper.catalogue import build_catalogue
from bible_scraper.errors import ConfigurationError
from bible_scraper.sources import ALL_SOURCES, get_source
from bible_scraper.translations import get_translation


def _book(translation, code):
    return next(b for b in build_catalogue(translation) if b.code == code)


def test_bible_com_url(kjv):
    url = get_source("bible.com").build_url(kjv, _book(kjv, "JHN"), 3)
    assert url == "https://www.bible.com/bible/1/JHN.3"


def test_debijbel_version_drops_digits():
    nbv = get_translation("NBV21")
    url = get_source("debijbel.nl").build_url(nbv, _book(nbv, "GEN"), 1)
    assert url == ("https://www.debijbel.nl/api/bible/passage?identifier=GEN1"
                   "&language=nl&version=nbv")


def test_basisbijbel_url_uses_lowercase_name():
    bb = get_translation("BB")
    url = get_source("basisbijbel.nl").build_url(bb, _book(bb, "1SA"), 4)
    assert url == "https://www.basisbijbel.nl/boek/1%20samuel/4"


def test_payload_paths_and_workers(tmp_path, kjv):
    debijbel = get_source("debijbel.nl")
    path = debijbel.payload_path(str(tmp_path), _book(kjv, "GEN"), 1)
    assert path.endswith("GEN_001.json")
    assert get_source("bible.com").workers_for("aggressive") == 6
    assert debijbel.workers_for("conservative") == 1


def test_unknown_source():
    assert set(ALL_SOURCES) == {"bible.com", "debijbel.nl", "basisbijbel.nl"}
    with pytest.raises(ConfigurationError, match="Unknown source"):
        get_source("example.org")
