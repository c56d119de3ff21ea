import pytest
from fastapi.testclient import TestClient

from api.server import create_app
from bible_scraper.jobs import DownloadService


@pytest.fixture
def client(config, small_catalogue, make_pipeline):
    service = DownloadService(config, pipeline=make_pipeline(), background=False)
    return TestClient(create_app(service))


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_list_translations(client):
    data = client.get("/api/translations").json()
    assert data["total"] == 10
    codes = {t["id"] for t in data["translations"]}
    assert {"KJV", "NASB", "NBV21"} <= codes

    public = client.get("/api/translations", params={"public_domain_only": "true"}).json()
    assert public["total"] == public["public_domain"]
    assert all(t["is_public_domain"] for t in public["translations"])


def test_translation_detail(client):
    resp = client.get("/api/translations/kjv")
    assert resp.status_code == 200
    assert resp.json()["full_name"] == "King James Version"
    assert resp.json()["source_id"] == 1

    assert client.get("/api/translations/XYZ").status_code == 404


def test_translations_by_language(client):
    data = client.get("/api/translations/language/nl").json()
    assert {t["id"] for t in data["translations"]} == {"HB", "SV1750", "BB", "NBV21"}
    assert data["count"] == 4


def test_legal_disclaimer(client):
    dutch = client.get("/api/legal/disclaimer", params={"language": "dutch"}).json()
    assert dutch["title"] == "BELANGRIJK JURIDISCH BERICHT"
    fallback = client.get("/api/legal/disclaimer", params={"language": "klingon"}).json()
    assert fallback["title"] == "IMPORTANT LEGAL NOTICE"


def test_start_rejections(client):
    resp = client.post("/api/downloads/start", json={"translation_id": "NASB"})
    assert resp.status_code == 400
    assert "Legal agreement" in resp.json()["detail"]

    assert client.post("/api/downloads/start",
                       json={"translation_id": "XYZ"}).status_code == 404
    assert client.post("/api/downloads/start",
                       json={"translation_id": "KJV", "mode": "everything"}).status_code == 400
    assert client.get("/api/downloads/active").json()["count"] == 0


def test_start_and_follow_a_download(client, stub):
    resp = client.post("/api/downloads/start", json={"translation_id": "KJV", "mode": "full"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["mode"] == "fetch-and-assemble-text"
    assert body["speed"] == "balanced"
    download_id = body["download_id"]

    progress = client.get(f"/api/downloads/progress/{download_id}").json()
    assert progress["status"] == "completed"
    assert progress["progress"]["completedChapters"] == 3
    assert progress["progress"]["percentage"] == 100
    assert progress["artifacts"][0].endswith("KJV.bible")
    assert len(stub.requests) == 3

    active = client.get("/api/downloads/active").json()
    assert [d["downloadId"] for d in active["downloads"]] == [download_id]

    assert client.post(f"/api/downloads/cancel/{download_id}").status_code == 409


def test_unknown_download(client):
    assert client.get("/api/downloads/progress/download_0_nothing").status_code == 404
    assert client.post("/api/downloads/cancel/download_0_nothing").status_code == 404


def test_cleanup(client):
    client.post("/api/downloads/start", json={"translation_id": "KJV", "mode": "fetch-only"})
    data = client.post("/api/downloads/cleanup").json()
    assert data == {"cleaned": 0, "remaining": 1}
