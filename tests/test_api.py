"""Tests for the HTTP endpoints."""

import pytest
from fastapi.testclient import TestClient

from app import app

OVERRIDE = "/*:\n * @plugindesc x\n */\nScene_Map.prototype.update = function() {};\n"


@pytest.fixture
def client():
    return TestClient(app)


def _payload(plugin):
    return plugin.model_dump(mode="json", by_alias=True)


class TestPluginEndpoints:
    """Tests for /api/plugins."""

    def test_generate(self, client, sample_plugin):
        response = client.post("/api/plugins/generate", json=_payload(sample_plugin))
        assert response.status_code == 200
        data = response.json()
        assert data["raw"] is False
        assert " * @plugindesc Sample plugin" in data["code"]

    def test_generate_raw(self, client):
        imported = client.post(
            "/api/plugins/import",
            json={"content": "/*:\n * @plugindesc Old\n */\n\nkeep();\n", "filename": "Kept.js"},
        ).json()
        imported["meta"]["description"] = "New"

        response = client.post("/api/plugins/generate?raw=true", json=imported)
        code = response.json()["code"]
        assert code.endswith("\n\nkeep();\n")
        assert "@plugindesc New" in code

    def test_generate_header(self, client, sample_plugin):
        response = client.post("/api/plugins/generate/header", json=_payload(sample_plugin))
        assert "PLUGIN_NAME" not in response.json()["code"]

    def test_validate(self, client, sample_plugin):
        response = client.post(
            "/api/plugins/validate",
            json={"plugin": _payload(sample_plugin), "knownPlugins": ["Other"]},
        )
        data = response.json()
        assert data["valid"] is True
        assert data["warnings"] == ["Dependency 'CoreLib' was not found in the project"]

    def test_import(self, client):
        response = client.post(
            "/api/plugins/import",
            json={"content": "/*:\n * @param speed\n * @type number\n * @default 4\n */\n", "filename": "Fast.js"},
        )
        data = response.json()
        assert data["meta"]["name"] == "Fast"
        assert data["parameters"][0]["default"] == 4
        assert "rawSource" in data

    def test_malformed_definition(self, client):
        response = client.post("/api/plugins/generate", json={"parameters": [{"type": "number"}]})
        assert response.status_code == 422


class TestProjectEndpoints:
    """Tests for /api/project."""

    def test_no_scan_yet(self, client):
        assert client.get("/api/project/scan/latest").status_code == 404

    def test_scan_and_latest(self, client, make_project):
        project = make_project({"A.js": OVERRIDE, "B.js": OVERRIDE})
        response = client.post("/api/project/scan", json={"projectPath": str(project)})
        assert response.status_code == 200
        data = response.json()
        assert data["dependencies"]["plugin_names"] == ["A", "B"]
        assert data["conflicts"]["conflicts"][0]["method"] == "Scene_Map.update"

        latest = client.get("/api/project/scan/latest").json()
        assert latest["scanned_at"] == data["scanned_at"]

    def test_missing_project(self, client, tmp_path):
        response = client.post("/api/project/scan", json={"projectPath": str(tmp_path / "nope")})
        assert response.status_code == 400
