import pytest
from fastapi.testclient import TestClient

from song_studio.api.routes import create_app
from song_studio.services.bootstrap import create_default_registry


@pytest.fixture
def client():
    registry = create_default_registry("mock")
    app = create_app(registry)
    with TestClient(app) as test_client:
        for entry in registry.registered_plugins:
            resp = test_client.post(f"/api/plugins/{entry.id}/initialize", json={"config": {}})
            assert resp.status_code == 200
        yield test_client


@pytest.fixture
def song_job(client):
    resp = client.post(
        "/api/songs",
        json={"genre": "Synthwave", "lyricTheme": "rainy city night", "key": "A-Minor", "bpm": 125},
    )
    assert resp.status_code == 200
    return resp.json()["job_id"]


class TestPluginEndpoints:
    def test_list_plugins(self, client):
        data = client.get("/api/plugins").json()
        assert data["summary"]["total"] == 5
        assert data["summary"]["active"]["lyrics"] == "mock-lyrics"
        assert all(p["is_ready"] for p in data["plugins"])

    def test_plugins_by_type(self, client):
        data = client.get("/api/plugins/types/midi").json()
        assert [p["id"] for p in data] == ["mock-midi"]

    def test_unknown_type_is_rejected(self, client):
        assert client.get("/api/plugins/types/video").status_code == 422

    def test_deactivate_then_activate(self, client):
        resp = client.post("/api/plugins/mock-image/deactivate")
        assert resp.json()["is_active"] is False
        assert client.get("/api/plugins/summary").json()["active"]["image"] is None

        resp = client.post("/api/plugins/mock-image/activate")
        assert resp.json()["is_active"] is True

    def test_unknown_plugin_is_404(self, client):
        assert client.post("/api/plugins/missing/activate").status_code == 404
        resp = client.post("/api/plugins/missing/initialize", json={"config": {}})
        assert resp.status_code == 404

    def test_unregister_is_idempotent(self, client):
        assert client.delete("/api/plugins/mock-evaluation").status_code == 200
        assert client.delete("/api/plugins/mock-evaluation").status_code == 200
        assert client.get("/api/health").json()["plugins"] == 4


class TestSongEndpoints:
    def test_presets(self, client):
        ids = [p["id"] for p in client.get("/api/presets").json()]
        assert "midnight-drive-synthwave" in ids

    def test_generate_and_poll(self, client, song_job):
        job = client.get(f"/api/songs/{song_job}").json()
        assert job["status"] == "completed"
        song = job["result"]
        assert song["title"]
        assert song["midi"]
        assert song["coverArt"].startswith("data:image/svg+xml;base64,")
        assert song["facets"]["midi"]["status"] == "completed"

    def test_unknown_job_is_404(self, client):
        assert client.get("/api/songs/nope").status_code == 404

    def test_analyze_and_apply(self, client, song_job):
        analysis = client.post(f"/api/songs/{song_job}/analyze").json()
        assert analysis["suggestion"]["section"] == "[Chorus]"

        song = client.post(f"/api/songs/{song_job}/apply-suggestion").json()
        assert "RAINY CITY NIGHT" in song["lyrics"]

        # The suggestion is consumed once applied.
        assert client.post(f"/api/songs/{song_job}/apply-suggestion").status_code == 400

    def test_evaluate(self, client, song_job):
        metrics = client.post(f"/api/songs/{song_job}/evaluate").json()
        assert 0 <= metrics["overallScore"] <= 100
        assert "rhymeConsistency" in metrics["lyrical"]

    def test_evaluate_without_active_plugin_is_409(self, client, song_job):
        client.post("/api/plugins/mock-evaluation/deactivate")
        assert client.post(f"/api/songs/{song_job}/evaluate").status_code == 409

    def test_edit_cover(self, client, song_job):
        resp = client.post(f"/api/songs/{song_job}/edit-cover", json={"edit_prompt": "gold"})
        assert resp.status_code == 200
        assert client.post(
            f"/api/songs/{song_job}/edit-cover", json={"edit_prompt": " "}
        ).status_code == 400

    def test_failed_job_reports_error(self, client):
        client.post("/api/plugins/mock-lyrics/deactivate")
        job_id = client.post(
            "/api/songs", json={"genre": "Pop", "lyricTheme": "summer"}
        ).json()["job_id"]
        job = client.get(f"/api/songs/{job_id}").json()
        assert job["status"] == "failed"
        assert "lyrics" in job["error"]
        assert client.post(f"/api/songs/{job_id}/analyze").status_code == 409


class TestStartup:
    def test_owned_registry_initialized_from_environment(self, monkeypatch):
        monkeypatch.setenv("SONG_STUDIO_BACKEND", "mock")
        with TestClient(create_app()) as client:
            plugins = client.get("/api/plugins").json()["plugins"]
            assert {p["id"] for p in plugins} >= {"mock-lyrics", "mock-image"}
            assert all(p["is_ready"] for p in plugins)

    def test_missing_api_key_leaves_plugins_unready(self, monkeypatch):
        monkeypatch.setenv("SONG_STUDIO_BACKEND", "gemini")
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with TestClient(create_app()) as client:
            plugins = client.get("/api/plugins").json()["plugins"]
            assert len(plugins) == 5
            assert not any(p["is_ready"] for p in plugins)

            resp = client.post("/api/plugins/gemini-lyrics/initialize", json={"config": {}})
            assert resp.status_code == 400

    def test_bad_timeout_does_not_abort_startup(self, monkeypatch):
        monkeypatch.setenv("SONG_STUDIO_BACKEND", "gemini")
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        monkeypatch.setenv("SONG_STUDIO_TIMEOUT", "forever")
        with TestClient(create_app()) as client:
            assert client.get("/api/health").json()["status"] == "ok"
            plugins = client.get("/api/plugins").json()["plugins"]
            assert not any(p["is_ready"] for p in plugins)
