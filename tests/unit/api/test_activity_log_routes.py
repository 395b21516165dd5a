"""Unit tests for the activity log and restore routes."""

import pytest
from fastapi.testclient import TestClient

from src.infrastructure.stubs.audit_log_repository_stub import AuditLogRepositoryStub


@pytest.fixture
def deleted(client: TestClient, alice: dict[str, str], sam: dict[str, str]) -> dict:
    created = client.post(
        "/v1/admin-tasks",
        json={"task_type": "GENERAL", "title": "Order office supplies"},
        headers=alice,
    ).json()
    response = client.delete(f"/v1/admin-tasks/{created['id']}", headers=sam)
    assert response.status_code == 200
    return {"task": created, "log_id": response.json()["log_id"]}


class TestListActivityLogs:
    """GET /v1/activity-logs."""

    def test_newest_first(self, client: TestClient, deleted: dict, sam: dict[str, str]) -> None:
        response = client.get("/v1/activity-logs", headers=sam)
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["total_pages"] == 1
        first, second = body["items"]
        assert (first["action"], second["action"]) == ("delete", "create")
        assert first["id"] == deleted["log_id"]
        assert first["restorable"] is True
        assert second["restorable"] is False
        assert second["ip_address"] == "testclient"

    def test_filters_by_action(
        self, client: TestClient, deleted: dict, sam: dict[str, str]
    ) -> None:
        body = client.get("/v1/activity-logs?action=create", headers=sam).json()
        assert [e["action"] for e in body["items"]] == ["create"]

    def test_resolve_marks_missing_entity(
        self, client: TestClient, deleted: dict, sam: dict[str, str]
    ) -> None:
        body = client.get("/v1/activity-logs?resolve=true", headers=sam).json()
        assert {e["entity_exists"] for e in body["items"]} == {False}

    def test_staff_forbidden(self, client: TestClient, alice: dict[str, str]) -> None:
        response = client.get("/v1/activity-logs", headers=alice)
        assert response.status_code == 403
        assert "system:logs" in response.json()["detail"]

    def test_stats(self, client: TestClient, deleted: dict, olivia: dict[str, str]) -> None:
        response = client.get("/v1/activity-logs/stats", headers=olivia)
        assert response.status_code == 200
        body = response.json()
        assert body["total_today"] == 2
        assert {c["name"] for c in body["by_action"]} == {"create", "delete"}
        assert body["by_entity"] == [{"name": "admin_task", "count": 2}]


class TestRestore:
    """POST /v1/activity-logs/{log_id}/restore."""

    def test_restores_deleted_task(
        self, client: TestClient, deleted: dict, sam: dict[str, str]
    ) -> None:
        response = client.post(f"/v1/activity-logs/{deleted['log_id']}/restore", headers=sam)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["restore_log_id"]

        restored = client.get(f"/v1/admin-tasks/{body['restored_id']}", headers=sam).json()
        assert restored["title"] == "Order office supplies"
        assert restored["task_no"] != deleted["task"]["task_no"]

    def test_owner_forbidden(
        self, client: TestClient, deleted: dict, olivia: dict[str, str]
    ) -> None:
        response = client.post(
            f"/v1/activity-logs/{deleted['log_id']}/restore", headers=olivia
        )
        assert response.status_code == 403

    def test_unknown_entry(self, client: TestClient, sam: dict[str, str]) -> None:
        response = client.post(
            "/v1/activity-logs/00000000-0000-4000-8000-000000000000/restore", headers=sam
        )
        assert response.status_code == 404

    def test_create_entry_not_restorable(
        self, client: TestClient, deleted: dict, sam: dict[str, str]
    ) -> None:
        create_entry = client.get("/v1/activity-logs?action=create", headers=sam).json()
        log_id = create_entry["items"][0]["id"]
        response = client.post(f"/v1/activity-logs/{log_id}/restore", headers=sam)
        assert response.status_code == 422

    def test_audit_outage_answers_503(
        self,
        client: TestClient,
        deleted: dict,
        audit_log_stub: AuditLogRepositoryStub,
        sam: dict[str, str],
    ) -> None:
        audit_log_stub.fail_next_append()
        response = client.post(f"/v1/activity-logs/{deleted['log_id']}/restore", headers=sam)
        assert response.status_code == 503
        assert client.get("/v1/admin-tasks", headers=sam).json()["total"] == 0
