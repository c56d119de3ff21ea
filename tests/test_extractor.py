import json

import pytest
from conftest import chapter_page

from bible_scraper.errors import ExtractionError
from bible_scraper.extractor import HeuristicExtractor, JsonExtractor, MarkupExtractor
from bible_scraper.sources import get_source


def _pairs(units):
    return [(u.verse, u.text) for u in units]


def test_bible_com_page(catalogue):
    units = get_source("bible.com").extract(chapter_page("GEN", 1, verses=3), catalogue[0], 1)
    assert _pairs(units) == [
        (1, "Verse 1 of GEN 1."),
        (2, "Verse 2 of GEN 1."),
        (3, "Verse 3 of GEN 1."),
    ]
    assert units[0].book_index == 1
    assert units[0].key == "{01001001}"


def test_footnotes_are_dropped(catalogue):
    page = (
        '<html><body>'
        '<span data-usfm="GEN.1.1" class="verse v1"><span class="label">1</span>'
        '<span class="content">In the beginning</span>'
        '<span class="note f"><span class="body">Or: at first</span></span>'
        '<span class="content">God created.</span></span>'
        '</body></html>'
    )
    units = MarkupExtractor().extract(page, catalogue[0], 1)
    assert _pairs(units) == [(1, "In the beginning God created.")]


def test_fragments_of_one_verse_are_merged(catalogue):
    page = (
        '<html><body>'
        '<span data-usfm="GEN.1.2" class="verse"><span class="content">And the earth</span></span>'
        '<span data-usfm="GEN.1.1" class="verse"><span class="content">In the beginning.</span></span>'
        '<span data-usfm="GEN.1.2" class="verse"><span class="content">was void.</span></span>'
        '</body></html>'
    )
    units = MarkupExtractor().extract(page, catalogue[0], 1)
    assert _pairs(units) == [(1, "In the beginning."), (2, "And the earth was void.")]


def test_older_data_verse_layout(catalogue):
    page = (
        '<html><body>'
        '<p class="verse" data-verse="1">1 In the beginning God created the heaven.</p>'
        '<p class="verse" data-verse="2">2 And the earth was without form.</p>'
        '</body></html>'
    )
    units = MarkupExtractor().extract(page, catalogue[0], 1)
    assert _pairs(units) == [
        (1, "In the beginning God created the heaven."),
        (2, "And the earth was without form."),
    ]


def test_heuristic_keeps_innermost_blocks(catalogue):
    page = (
        '<html><body><div>'
        '<p>1 In the beginning God created the heaven.</p>'
        '<p>2 And the earth was without form.</p>'
        '<p>Short</p>'
        '</div></body></html>'
    )
    units = HeuristicExtractor().extract(page, catalogue[0], 1)
    assert _pairs(units) == [
        (1, "In the beginning God created the heaven."),
        (2, "And the earth was without form."),
    ]


def test_json_payload_is_sorted(catalogue):
    payload = json.dumps({"content": {"verses": [
        {"verse": 2, "text": "En de aarde was woest."},
        {"verse": "1", "text": "In het begin schiep God."},
        {"verse": 3, "text": ""},
    ]}})
    units = JsonExtractor().extract(payload, catalogue[0], 1)
    assert _pairs(units) == [(1, "In het begin schiep God."), (2, "En de aarde was woest.")]


def test_json_extractor_falls_back_on_html(catalogue):
    page = '<html><body><p>1 In het begin schiep God de hemel.</p></body></html>'
    units = get_source("debijbel.nl").extract(page, catalogue[0], 1)
    assert _pairs(units) == [(1, "In het begin schiep God de hemel.")]


def test_json_with_wrong_shape_raises(catalogue):
    with pytest.raises(ExtractionError):
        JsonExtractor().extract(json.dumps({"data": []}), catalogue[0], 1)


@pytest.mark.parametrize("source", ["bible.com", "basisbijbel.nl", "debijbel.nl"])
def test_page_without_verses_raises(source, catalogue):
    with pytest.raises(ExtractionError, match="No verses found in GEN 1"):
        get_source(source).extract("<html><body><p>Nothing here</p></body></html>",
                                   catalogue[0], 1)
