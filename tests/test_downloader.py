import os
import random
import time

import httpx
import pytest
from conftest import FixedRandom, chapter_page

from bible_scraper.downloader import Downloader
from bible_scraper.errors import (ConfigurationError, FetchConnectionError, FetchTimeout,
                                  NetworkError, NotFound, RateLimited)
from bible_scraper.sources import get_source
from bible_scraper.throttle import AdaptiveThrottle
from bible_scraper.translations import Translation


@pytest.fixture
def make_downloader(config, kjv, stub, sleeps, clock, tmp_path):
    def _make(translation=kjv, rng=None):
        throttle = AdaptiveThrottle.for_speed("balanced", clock=clock, rng=rng or FixedRandom())
        return Downloader(config, get_source("bible.com"), translation, str(tmp_path / "raw"),
                          throttle, sleep=sleeps.append, transport=stub.transport)
    return _make


def test_fetch_saves_payload_and_waits_for_throttle(make_downloader, catalogue, stub, sleeps):
    downloader = make_downloader()
    result = downloader.fetch_chapter(catalogue[0], 1)

    assert result.outcome == "success"
    assert os.path.basename(result.path) == "GEN_001.html"
    with open(result.path, encoding="utf-8") as f:
        assert f.read() == chapter_page("GEN", 1)

    assert str(stub.requests[0].url) == "https://www.bible.com/bible/1/GEN.1"
    assert sleeps == [pytest.approx(0.2)]
    assert downloader.throttle.success_count == 1


def test_request_headers(make_downloader, catalogue, stub):
    make_downloader().fetch_chapter(catalogue[0], 1)
    headers = stub.requests[0].headers
    assert "Mozilla/5.0" in headers["user-agent"]
    assert headers["dnt"] == "1"
    assert headers["accept-language"].startswith("en-US")


def test_valid_payload_is_skipped_without_a_request(make_downloader, catalogue, stub, sleeps):
    downloader = make_downloader()
    path = downloader.source.payload_path(downloader.raw_dir, catalogue[0], 2)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(chapter_page("GEN", 2))

    result = downloader.fetch_chapter(catalogue[0], 2)

    assert result.outcome == "skipped"
    assert stub.requests == []
    assert sleeps == []


def test_429_is_rate_limited_and_slows_the_throttle(make_downloader, catalogue, stub):
    stub.responses["GEN.1"] = httpx.Response(429)
    downloader = make_downloader()

    with pytest.raises(RateLimited) as exc:
        downloader.fetch_chapter(catalogue[0], 1)

    assert exc.value.status_code == 429
    assert exc.value.kind == "RateLimited"
    assert downloader.throttle.last_rate_limit is not None
    assert downloader.throttle.current_delay == pytest.approx(0.3)
    assert not os.path.exists(downloader.source.payload_path(downloader.raw_dir, catalogue[0], 1))


def test_404_is_not_found(make_downloader, catalogue, stub):
    stub.responses["GEN.2"] = httpx.Response(404)
    with pytest.raises(NotFound):
        make_downloader().fetch_chapter(catalogue[0], 2)


def test_server_error_is_network_error(make_downloader, catalogue, stub):
    stub.responses["EXO.1"] = httpx.Response(503)
    downloader = make_downloader()
    with pytest.raises(NetworkError) as exc:
        downloader.fetch_chapter(catalogue[1], 1)
    assert exc.value.status_code == 503
    assert "503" in str(exc.value)
    assert downloader.throttle.last_rate_limit is None


def test_transport_errors_are_classified(make_downloader, catalogue, stub):
    request = httpx.Request("GET", "https://www.bible.com/bible/1/GEN.1")
    stub.responses["GEN.1"] = httpx.ReadTimeout("timed out", request=request)
    stub.responses["GEN.2"] = httpx.ConnectError("connection refused", request=request)
    downloader = make_downloader()

    with pytest.raises(FetchTimeout) as timeout:
        downloader.fetch_chapter(catalogue[0], 1)
    assert timeout.value.kind == "Timeout"

    with pytest.raises(FetchConnectionError) as conn:
        downloader.fetch_chapter(catalogue[0], 2)
    assert conn.value.kind == "ConnectionError"

    assert downloader.throttle.recent_failures() == 2


def test_missing_source_id_is_a_configuration_error(make_downloader, catalogue, stub, sleeps):
    broken = Translation(code="XX", full_name="Broken", short_name="XX", sheet_name="XX",
                         language="EN", language_name="en - English", license="Public domain",
                         is_public_domain=True, source="bible.com", source_id=None)
    with pytest.raises(ConfigurationError):
        make_downloader(translation=broken).fetch_chapter(catalogue[0], 1)
    assert stub.requests == []
    assert sleeps == []


def test_client_is_lazy_and_closable(make_downloader):
    downloader = make_downloader(rng=random.Random(1))
    assert downloader._client is None
    client = downloader.client
    assert downloader.client is client
    downloader.close()
    assert client.is_closed


def test_parallel_fetches_share_one_client(config, kjv, catalogue, stub, clock, monkeypatch,
                                           make_pipeline):
    created = []
    real_client = httpx.Client

    class SlowClient(real_client):
        def __init__(self, *args, **kwargs):
            time.sleep(0.05)
            super().__init__(*args, **kwargs)
            created.append(self)

    monkeypatch.setattr(httpx, "Client", SlowClient)
    pipeline = make_pipeline()
    throttle = AdaptiveThrottle.for_speed("balanced", clock=clock, rng=FixedRandom())
    downloader = Downloader(config, get_source("bible.com"), kjv, pipeline.raw_dir_for(kjv),
                            throttle, sleep=lambda s: None, transport=stub.transport)

    outcome = pipeline.run_batch(downloader, [(catalogue[0], 1), (catalogue[0], 2),
                                              (catalogue[1], 1)])
    downloader.close()

    assert len(outcome.results) == 3
    assert len(created) == 1
    assert created[0].is_closed


def test_invalid_url_is_a_network_error(make_downloader, catalogue, stub):
    stub.responses["GEN.1"] = httpx.InvalidURL("Invalid non-printable ASCII character in URL")
    downloader = make_downloader()

    with pytest.raises(NetworkError):
        downloader.fetch_chapter(catalogue[0], 1)
    assert downloader.throttle.recent_failures() == 1


def test_save_leaves_no_partial_files(make_downloader, catalogue, monkeypatch):
    downloader = make_downloader()
    result = downloader.fetch_chapter(catalogue[0], 1)
    assert os.listdir(downloader.raw_dir) == ["GEN_001.html"]

    def interrupted(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", interrupted)
    with pytest.raises(NetworkError, match="disk full"):
        downloader.fetch_chapter(catalogue[0], 2)

    assert os.listdir(downloader.raw_dir) == [os.path.basename(result.path)]
    assert downloader.throttle.recent_failures() == 1
