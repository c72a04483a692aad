"""
Tests for the HTTP surface using FastAPI's TestClient.
"""

from unittest.mock import patch

import pytest
import structlog
from fastapi.testclient import TestClient

from src.main import create_app
from src.services.alarm_service import AlarmService

KITTY = {"X-API-Key": "kitty-secret-key"}
SOFIA = {"X-API-Key": "sofia-secret-key"}
RAIN_ALARM = {"soundId": 1, "soundName": "Rain", "alarmTime": "07:00"}


@pytest.fixture
def client(test_settings):
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


class TestAuthentication:
    """API key middleware and the validate-key endpoint."""

    def test_protected_path_without_key_is_rejected(self, client):
        response = client.get("/alarms")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized: Invalid or missing API key"}

    def test_protected_path_with_unknown_key_is_rejected(self, client):
        response = client.get("/sounds", headers={"X-API-Key": "nope"})

        assert response.status_code == 401

    @pytest.mark.parametrize("path", ["/documents", "/uiX", "/metrics-admin", "/audiobooks"])
    def test_paths_sharing_a_public_prefix_are_protected(self, client, path):
        assert client.get(path).status_code == 401

    def test_validate_key_valid(self, client):
        response = client.get("/validate-key", headers=KITTY)

        assert response.status_code == 200
        assert response.json() == {"valid": True, "message": "API key is valid"}

    def test_validate_key_missing(self, client):
        response = client.get("/validate-key")

        assert response.status_code == 401
        assert response.json() == {"valid": False, "message": "No API key provided"}

    def test_validate_key_invalid(self, client):
        response = client.get("/validate-key", headers={"X-API-Key": "wrong"})

        assert response.status_code == 401
        assert response.json() == {"valid": False, "message": "Invalid API key"}


class TestAlarmEndpoints:
    """Alarm CRUD over HTTP."""

    def test_create_returns_201_with_active_alarm(self, client):
        response = client.post("/alarms", json=RAIN_ALARM, headers=KITTY)

        assert response.status_code == 201
        body = response.json()
        assert body["isActive"] is True
        assert body["soundId"] == 1
        assert body["soundName"] == "Rain"
        assert body["alarmTime"] == "07:00"
        assert isinstance(body["id"], int)
        assert "createdAt" in body and "updatedAt" in body

    def test_active_time_query_follows_toggle(self, client):
        alarm_id = client.post("/alarms", json=RAIN_ALARM, headers=KITTY).json()["id"]

        active = client.get("/alarms/active/07:00", headers=KITTY).json()
        assert [alarm["id"] for alarm in active] == [alarm_id]

        toggled = client.patch(f"/alarms/{alarm_id}/toggle", headers=KITTY)
        assert toggled.status_code == 200
        assert toggled.json()["isActive"] is False

        assert client.get("/alarms/active/07:00", headers=KITTY).json() == []

    def test_get_and_list(self, client):
        alarm_id = client.post("/alarms", json=RAIN_ALARM, headers=KITTY).json()["id"]
        client.post("/alarms", json={**RAIN_ALARM, "alarmTime": "06:45"}, headers=KITTY)

        fetched = client.get(f"/alarms/{alarm_id}", headers=KITTY)
        listed = client.get("/alarms", headers=KITTY)

        assert fetched.status_code == 200
        assert fetched.json()["alarmTime"] == "07:00"
        assert [alarm["alarmTime"] for alarm in listed.json()] == ["06:45", "07:00"]

    def test_foreign_alarm_is_not_found(self, client):
        alarm_id = client.post("/alarms", json=RAIN_ALARM, headers=KITTY).json()["id"]

        foreign = client.get(f"/alarms/{alarm_id}", headers=SOFIA)
        missing = client.get("/alarms/9999", headers=SOFIA)

        assert foreign.status_code == 404
        assert missing.status_code == 404
        assert foreign.json()["error"] == missing.json()["error"] == "NotFound"
        assert client.get("/alarms", headers=SOFIA).json() == []

    def test_partial_update_keeps_other_fields(self, client):
        created = client.post("/alarms", json=RAIN_ALARM, headers=KITTY).json()

        response = client.put(f"/alarms/{created['id']}", json={"alarmTime": "08:30"}, headers=KITTY)

        assert response.status_code == 200
        body = response.json()
        assert body["alarmTime"] == "08:30"
        assert body["soundId"] == created["soundId"]
        assert body["soundName"] == created["soundName"]
        assert body["isActive"] is True
        assert body["createdAt"] == created["createdAt"]
        assert body["updatedAt"] >= created["updatedAt"]

    def test_update_missing_alarm_is_not_found(self, client):
        response = client.put("/alarms/123", json={"soundName": "Ocean"}, headers=KITTY)

        assert response.status_code == 404

    def test_toggle_missing_alarm_is_not_found(self, client):
        assert client.patch("/alarms/123/toggle", headers=KITTY).status_code == 404

    def test_delete_is_idempotent(self, client):
        alarm_id = client.post("/alarms", json=RAIN_ALARM, headers=KITTY).json()["id"]

        first = client.delete(f"/alarms/{alarm_id}", headers=KITTY)
        second = client.delete(f"/alarms/{alarm_id}", headers=KITTY)

        assert first.status_code == second.status_code == 200
        assert first.json() == {"message": "Alarm deleted successfully"}
        assert client.get(f"/alarms/{alarm_id}", headers=KITTY).status_code == 404

    def test_delete_foreign_alarm_leaves_it_in_place(self, client):
        alarm_id = client.post("/alarms", json=RAIN_ALARM, headers=KITTY).json()["id"]

        assert client.delete(f"/alarms/{alarm_id}", headers=SOFIA).status_code == 200
        assert client.get(f"/alarms/{alarm_id}", headers=KITTY).status_code == 200

    @pytest.mark.parametrize("payload", [
        {"soundName": "Rain", "alarmTime": "07:00"},
        {"soundId": "one", "soundName": "Rain", "alarmTime": "07:00"},
        {"soundId": 1, "soundName": "", "alarmTime": "07:00"},
    ])
    def test_malformed_create_body_is_bad_request(self, client, payload):
        response = client.post("/alarms", json=payload, headers=KITTY)

        assert response.status_code == 400
        assert response.json()["error"] == "BadRequest"

    def test_non_json_body_is_bad_request(self, client):
        response = client.post(
            "/alarms",
            content=b"soundId=1",
            headers={**KITTY, "Content-Type": "application/json"}
        )

        assert response.status_code == 400

    def test_unscoped_mode_shares_alarms(self, test_settings):
        settings = test_settings.model_copy(update={"credential_scoping": False})

        with TestClient(create_app(settings)) as client:
            alarm_id = client.post("/alarms", json=RAIN_ALARM, headers=KITTY).json()["id"]

            assert client.get(f"/alarms/{alarm_id}", headers=SOFIA).status_code == 200


class TestSoundEndpoints:
    """Catalog listing and static assets."""

    def test_lists_complete_sounds(self, client, sample_assets):
        response = client.get("/sounds", headers=KITTY)

        assert response.status_code == 200
        names = [sound["name"] for sound in response.json()]
        assert names == ["City Night", "Ocean", "Rain On_roof"]

    def test_sound_shape(self, client, sample_assets):
        sound = client.get("/sounds", headers=KITTY).json()[0]

        assert set(sound) == {"id", "name", "metadata", "audio", "cover", "statistics", "relatedSounds"}
        assert set(sound["metadata"]) == {"description", "tags", "author", "lastUpdated", "details", "publishDate"}
        assert sound["cover"]["dimensions"] == {"width": 640, "height": 480}

    def test_search_without_match_is_not_found(self, client, sample_assets):
        response = client.get("/sounds", params={"search": "thunder"}, headers=KITTY)

        assert response.status_code == 404
        assert response.json()["message"] == "No sounds found"

    def test_empty_catalog_is_not_found(self, client):
        assert client.get("/sounds", headers=KITTY).status_code == 404

    def test_author_filter_via_query_string(self, client, sample_assets):
        response = client.get("/sounds", params={"filter": "author", "author": "JANE DOE"}, headers=KITTY)

        assert response.status_code == 200
        assert {sound["metadata"]["author"].lower() for sound in response.json()} == {"jane doe"}

    def test_parameters_via_headers(self, client, sample_assets):
        response = client.get("/sounds", headers={**KITTY, "filter": "tag", "tag": "nature", "sort": "desc"})

        assert response.status_code == 200
        assert [sound["name"] for sound in response.json()] == ["Rain On_roof", "Ocean"]

    def test_date_range_via_headers(self, client, sample_assets):
        response = client.get(
            "/sounds",
            headers={**KITTY, "filter": "date", "startDate": "2024-01-01", "endDate": "2024-06-30"}
        )

        assert [sound["name"] for sound in response.json()] == ["Rain On_roof"]

    def test_audio_is_public(self, client, sample_assets):
        response = client.get("/audio/ocean.mp3")

        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/mpeg"
        assert response.content.startswith(b"ID3")

    def test_cover_is_public(self, client, sample_assets):
        response = client.get("/cover/ocean.jpg")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"

    def test_missing_assets_are_not_found(self, client, sample_assets):
        assert client.get("/audio/thunder.mp3").json()["message"] == "Audio file not found"
        assert client.get("/cover/thunder.jpg").status_code == 404
        assert client.get("/audio/..%2Fdescription%2Focean.txt").status_code == 404


class TestDocumentation:
    """Swagger UI, OpenAPI document and operational endpoints."""

    def test_doc_falls_back_to_generated_schema(self, client):
        response = client.get("/doc")

        assert response.status_code == 200
        assert "/alarms" in response.json()["paths"]

    def test_doc_serves_swagger_yaml(self, client, test_settings):
        test_settings.swagger_path.write_text("openapi: 3.0.0\ninfo:\n  title: Skills Music API\n  version: '3'\npaths: {}\n")

        response = client.get("/doc")

        assert response.json()["info"]["title"] == "Skills Music API"
        assert response.json()["paths"] == {}

    def test_ui_points_at_doc(self, client):
        response = client.get("/ui")

        assert response.status_code == 200
        assert "/doc" in response.text
        assert "/swagger-config" in response.text

    def test_swagger_config(self, client):
        assert client.get("/swagger-config").json()["docExpansion"] == "list"

    def test_health_and_metrics_are_public(self, client):
        health = client.get("/healthz")
        metrics = client.get("/metrics")

        assert health.status_code == 200
        assert health.json()["status"] == "healthy"
        assert metrics.status_code == 200
        assert "total_requests" in metrics.json()["metrics"]

    def test_health_reports_alarm_count(self, client):
        assert client.get("/healthz").json()["alarm_count"] == 0

        client.post("/alarms", json=RAIN_ALARM, headers=KITTY)
        client.post("/alarms", json=RAIN_ALARM, headers=SOFIA)

        assert client.get("/healthz").json()["alarm_count"] == 2

    def test_handlers_log_with_trace_context(self, client):
        seen = {}

        def capture(service, credential):
            seen.update(structlog.contextvars.get_contextvars())
            return []

        with patch.object(AlarmService, "list", autospec=True, side_effect=capture):
            response = client.get("/alarms", headers={**KITTY, "X-Call-ID": "call-trace"})

        assert response.status_code == 200
        assert seen["correlation_id"] == "call-trace"
        assert len(seen["trace_id"]) == 32
        assert len(seen["span_id"]) == 16

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/alarms", headers={**KITTY, "X-Call-ID": "call-123"})

        assert response.headers["X-Call-ID"] == "call-123"
