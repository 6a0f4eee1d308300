from datetime import datetime, timezone

from backend.app.api.routes import analyses as analyses_routes
from backend.app.services.analyses import AnalysisStoreError


def _seed_reference_store(seed_analyses):
    seed_analyses(
        {"id": "A", "session_name": "Spring Tacoma push", "hour": 2},
        {"id": "B", "session_name": "4Runner clearance", "hour": 1},
        {"id": "C", "session_name": "Retired", "status": "deleted", "hour": 3},
    )


def test_list_returns_active_analyses_newest_first(client, seed_analyses):
    _seed_reference_store(seed_analyses)

    response = client.get("/api/analyses/list")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert [row["id"] for row in data["analyses"]] == ["A", "B"]
    assert data["analyses"][0]["session_name"] == "Spring Tacoma push"
    assert data["analyses"][0]["created_at"] == "2026-10-19T02:00:00+00:00"
    assert "error" not in data


def test_list_on_empty_store_returns_empty_sequence(client):
    response = client.get("/api/analyses/list")
    assert response.status_code == 200
    assert response.json() == {"success": True, "analyses": []}


def test_list_breaks_created_at_ties_by_id(client, seed_analyses):
    seed_analyses({"id": "b-second", "hour": 5}, {"id": "a-first", "hour": 5}, {"id": "older", "hour": 4})

    response = client.get("/api/analyses/list")
    assert [row["id"] for row in response.json()["analyses"]] == ["a-first", "b-second", "older"]


def test_list_store_error_uses_database_message(client, monkeypatch):
    def _boom(session):
        raise AnalysisStoreError("relation does not exist")

    monkeypatch.setattr(analyses_routes, "list_active_analyses", _boom)

    response = client.get("/api/analyses/list")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to retrieve analyses from database"}


def test_list_unexpected_error_uses_generic_message(client, monkeypatch):
    def _boom(session):
        raise RuntimeError("network unreachable")

    monkeypatch.setattr(analyses_routes, "list_active_analyses", _boom)

    response = client.get("/api/analyses/list")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to retrieve analyses"}


def test_delete_existing_analysis_is_not_idempotent(client, seed_analyses, stored_ids):
    _seed_reference_store(seed_analyses)

    response = client.delete("/api/analyses/delete/A")
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Analysis deleted successfully",
        "deletedId": "A",
    }
    assert stored_ids() == ["B", "C"]

    listed = client.get("/api/analyses/list").json()["analyses"]
    assert [row["id"] for row in listed] == ["B"]

    response = client.delete("/api/analyses/delete/A")
    assert response.status_code == 404
    assert response.json() == {"error": "Analysis not found"}


def test_delete_unknown_id_returns_404_without_mutation(client, seed_analyses, stored_ids):
    _seed_reference_store(seed_analyses)

    response = client.delete("/api/analyses/delete/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": "Analysis not found"}
    assert stored_ids() == ["A", "B", "C"]


def test_delete_without_id_is_rejected(client, seed_analyses, stored_ids, caplog):
    _seed_reference_store(seed_analyses)

    with caplog.at_level("WARNING", logger="backend.app.api.routes.analyses"):
        response = client.delete("/api/analyses/delete/")
    assert response.status_code == 400
    assert response.json() == {"error": "Analysis ID is required"}
    assert "Rejected delete without analysis id" in caplog.text

    response = client.delete("/api/analyses/delete/%20%20")
    assert response.status_code == 404
    assert response.json() == {"error": "Analysis not found"}
    assert stored_ids() == ["A", "B", "C"]


def test_delete_store_and_unexpected_errors_share_message(client, monkeypatch):
    def _store_failure(session, analysis_id):
        raise AnalysisStoreError("permission denied")

    monkeypatch.setattr(analyses_routes, "delete_analysis", _store_failure)
    response = client.delete("/api/analyses/delete/A")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to delete analysis"}

    def _unexpected(session, analysis_id):
        raise RuntimeError("socket closed")

    monkeypatch.setattr(analyses_routes, "delete_analysis", _unexpected)
    response = client.delete("/api/analyses/delete/A")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to delete analysis"}


def test_save_assigns_id_and_lists_first(client, seed_analyses):
    seed_analyses({"id": "older", "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc)})

    payload = {
        "id": "client-chosen",
        "created_at": "1999-01-01T00:00:00Z",
        "session_name": "Land Cruiser launch",
        "session_id": "upload-42",
        "total_impressions": 12000,
        "total_clicks": 360,
        "total_cost": 910.5,
        "average_ctr": 3.0,
        "analytics_data": {"topPerformingCampaigns": []},
        "unknown_field": "ignored",
    }
    response = client.post("/api/analyses/save", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Analysis saved successfully"

    saved = data["analysis"]
    assert saved["id"] != "client-chosen"
    assert not saved["created_at"].startswith("1999")
    assert saved["status"] == "active"
    assert saved["total_clicks"] == 360
    assert saved["average_cpa"] == 0
    assert "unknown_field" not in saved

    listed = client.get("/api/analyses/list").json()["analyses"]
    assert [row["id"] for row in listed] == [saved["id"], "older"]


def test_save_rejects_invalid_payload(client, stored_ids):
    response = client.post("/api/analyses/save", json={"total_clicks": "lots"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid analysis payload"}

    response = client.post("/api/analyses/save", json={"status": "published"})
    assert response.status_code == 400
    assert stored_ids() == []


def test_save_store_failure_returns_500(client, monkeypatch):
    def _boom(session, data):
        raise AnalysisStoreError("disk full")

    monkeypatch.setattr(analyses_routes, "save_analysis", _boom)

    response = client.post("/api/analyses/save", json={"session_name": "x"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to save analysis"}


def test_export_empty_store_returns_placeholder_report(client):
    response = client.get("/api/analyses/export")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert 'filename="vla_analyses_export_' in response.headers["content-disposition"]
    assert "No saved analyses found." in response.text


def test_export_includes_active_analyses_in_list_order(client, seed_analyses):
    _seed_reference_store(seed_analyses)

    response = client.get("/api/analyses/export")
    assert response.status_code == 200
    assert 'filename="vla_comprehensive_analyses_' in response.headers["content-disposition"]
    body = response.text
    assert "Total Analyses: 2" in body
    assert body.index("ANALYSIS #1: Spring Tacoma push") < body.index("ANALYSIS #2: 4Runner clearance")
    assert "Retired" not in body


def test_export_failure_returns_json_error(client, monkeypatch):
    def _boom(session):
        raise AnalysisStoreError("timeout")

    monkeypatch.setattr(analyses_routes, "list_active_analyses", _boom)

    response = client.get("/api/analyses/export")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to export analyses"}


def test_export_renders_saved_device_click_counts(client):
    payload = {
        "session_name": "Google Ads October",
        "analytics_data": {
            "totalClicks": 1296,
            "deviceBreakdown": {"mobile": 1146, "desktop": 136, "tablet": 14},
            "topPerformingCampaigns": [{"name": "Brand", "impressions": 5000, "clicks": 300}],
        },
    }
    assert client.post("/api/analyses/save", json=payload).status_code == 200

    response = client.get("/api/analyses/export")
    assert response.status_code == 200
    body = response.text
    assert "ANALYSIS #1: Google Ads October" in body
    assert "DEVICE BREAKDOWN:" in body
    assert "mobile: 88.4% (1,146 clicks)" in body
    assert "tablet: 1.1% (14 clicks)" in body
