"""Unit tests for the REST API."""

from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from library_rules_workflow.assistant.config import WorkflowSettings
from library_rules_workflow.server.app import create_app


def test_health_and_workflows(settings: WorkflowSettings) -> None:
    client = TestClient(create_app(settings))

    health = client.get("/api/v1/health").json()
    assert health["status"] == "ok"
    assert "version" in health

    workflows = client.get("/api/v1/workflows").json()
    assert [w["name"] for w in workflows] == ["library-rules"]

    steps = client.get("/api/v1/workflows/library-rules/steps").json()
    assert [s["transition"] for s in steps] == ["stop", "stop", "auto", "auto"]
    assert steps[2]["requires_permission"] == "search_local_files"

    assert client.get("/api/v1/workflows/nope/steps").status_code == 404


def test_run_lifecycle(settings: WorkflowSettings) -> None:
    client = TestClient(create_app(settings))

    created = client.post("/api/v1/runs", json={})
    assert created.status_code == 201
    body = created.json()
    assert body["transition"] == "stop"
    assert body["run"]["status"] == "awaiting_input"
    assert "library information" in body["output"]
    run_id = body["run"]["run_id"]

    body = client.post(f"/api/v1/runs/{run_id}/advance", json={"input": "React"}).json()
    assert body["run"]["current_step_index"] == 1
    assert "May I search" in body["output"]

    body = client.post(f"/api/v1/runs/{run_id}/advance", json={"input": "yes"}).json()
    assert body["transition"] is None
    assert body["run"]["status"] == "completed"
    assert body["run"]["granted_permissions"] == ["search_local_files"]
    assert len(body["outputs"]) == 2
    assert Path(body["run"]["artifacts"]["rule_file"]).exists()

    fetched = client.get(f"/api/v1/runs/{run_id}").json()
    assert fetched["status"] == "completed"
    assert len(fetched["collected_outputs"]) == 4


def test_grant_permission_endpoint(settings: WorkflowSettings) -> None:
    client = TestClient(create_app(settings))
    run_id = client.post("/api/v1/runs", json={"input": "React"}).json()["run"]["run_id"]

    resp = client.post(
        f"/api/v1/runs/{run_id}/permissions", json={"permission": "search_local_files"}
    )

    assert resp.status_code == 200
    assert resp.json()["granted_permissions"] == ["search_local_files"]


def test_unknown_run_returns_404(settings: WorkflowSettings) -> None:
    client = TestClient(create_app(settings))

    assert client.get("/api/v1/runs/missing").status_code == 404
    assert client.post("/api/v1/runs/missing/advance", json={}).status_code == 404
    assert client.post("/api/v1/runs", json={"workflow": "nope"}).status_code == 404
