"""
API tests for the Retarget service.

Runs the FastAPI app in-process with a job store rooted in a temporary
directory.
"""

import json

import pytest
from fastapi.testclient import TestClient

from retarget.api.v1 import routes
from retarget.main import create_app
from retarget.services.jobs import JobStore


@pytest.fixture
def store(tmp_path):
    return JobStore(base_dir=tmp_path / "jobs")


@pytest.fixture
def client(store, monkeypatch):
    monkeypatch.setattr(routes, "get_job_store", lambda: store)
    with TestClient(create_app()) as test_client:
        yield test_client


def _source():
    return {
        "id": "root",
        "type": "frame",
        "bounds": {"width": 1200, "height": 628},
        "children": [
            {"id": "bg", "type": "rectangle", "fill": "image", "bounds": {"width": 1200, "height": 628}},
            {
                "id": "hero",
                "type": "group",
                "bounds": {"x": 700, "y": 100, "width": 300, "height": 400},
                "children": [
                    {
                        "id": "person",
                        "type": "rectangle",
                        "fill": "image",
                        "tags": ["subject"],
                        "bounds": {"width": 300, "height": 400},
                    }
                ],
            },
            {"id": "title", "type": "text", "font_size": 64, "bounds": {"x": 80, "y": 180, "width": 500, "height": 120}},
        ],
    }


def test_health_endpoints(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/api/v1/health").json() == {"status": "ok", "api_version": "v1"}


def test_list_targets(client):
    response = client.get("/api/v1/targets")
    assert response.status_code == 200
    targets = response.json()
    assert len(targets) == 15
    assert targets[0]["id"] == "figma-cover"
    tiktok = next(target for target in targets if target["id"] == "tiktok-vertical")
    assert tiktok["safe_area_critical"] is True
    assert tiktok["overlay_label"] == "Content Safe Zone"


def test_create_job_and_fetch_variants(client):
    response = client.post(
        "/api/v1/jobs",
        json={"source": _source(), "targets": ["display-leaderboard", "web-hero"]},
    )
    assert response.status_code == 201
    created = response.json()
    assert created["status"] == "completed"
    assert created["targets"] == ["display-leaderboard", "web-hero"]

    detail = client.get(f"/api/v1/jobs/{created['job_id']}").json()
    assert detail["status"] == "completed"
    assert detail["safe_area_ratio"] == 0.05
    assert detail["has_ai_signals"] is False

    variants = client.get(f"/api/v1/jobs/{created['job_id']}/variants").json()["variants"]
    assert [variant["target_id"] for variant in variants] == ["display-leaderboard", "web-hero"]

    leaderboard, hero = variants
    assert leaderboard["kill_switch"]["activated"] is True
    assert leaderboard["kill_switch"]["hidden_node_ids"] == ["display-leaderboard:person"]
    assert hero["kill_switch"]["activated"] is False
    assert (hero["frame"]["bounds"]["width"], hero["frame"]["bounds"]["height"]) == (1440, 600)
    assert hero["profile"] == "horizontal"


def test_job_listing(client):
    job_id = client.post("/api/v1/jobs", json={"source": _source(), "targets": ["web-hero"]}).json()["job_id"]
    listed = client.get("/api/v1/jobs").json()
    assert {"id": job_id, "status": "completed"} in listed


def test_malformed_ai_signals_are_dropped_not_rejected(client):
    response = client.post(
        "/api/v1/jobs",
        json={
            "source": _source(),
            "targets": ["web-hero"],
            "ai_signals": {"roles": "nope", "qa": [{"code": 5}], "focalPoints": [{"x": "left"}]},
        },
    )
    assert response.status_code == 201
    detail = client.get(f"/api/v1/jobs/{response.json()['job_id']}").json()
    assert detail["has_ai_signals"] is False


def test_ai_findings_surface_as_warnings(client):
    response = client.post(
        "/api/v1/jobs",
        json={
            "source": _source(),
            "targets": ["web-hero"],
            "safe_area_ratio": 0.1,
            "ai_signals": {"qa": [{"code": "LOW_CONTRAST", "severity": "error", "confidence": 90}]},
        },
    )
    job_id = response.json()["job_id"]
    assert client.get(f"/api/v1/jobs/{job_id}").json()["safe_area_ratio"] == 0.1

    (variant,) = client.get(f"/api/v1/jobs/{job_id}/variants").json()["variants"]
    assert {"code": "AI_LOW_CONTRAST", "severity": "warn"}.items() <= variant["warnings"][-1].items()


def test_unknown_target_is_rejected(client, store):
    response = client.post("/api/v1/jobs", json={"source": _source(), "targets": ["web-hero", "billboard"]})
    assert response.status_code == 422
    assert "billboard" in response.json()["detail"]


def test_request_validation(client):
    assert client.post("/api/v1/jobs", json={"source": _source(), "targets": []}).status_code == 422
    assert (
        client.post("/api/v1/jobs", json={"source": _source(), "targets": ["web-hero"], "safe_area_ratio": 0.9}).status_code
        == 422
    )


def test_missing_job_returns_404(client):
    assert client.get("/api/v1/jobs/does-not-exist").status_code == 404
    assert client.get("/api/v1/jobs/does-not-exist/variants").status_code == 404


def test_psd_upload_rejects_bad_targets(client):
    response = client.post(
        "/api/v1/jobs/psd",
        files={"psd": ("banner.psd", b"8BPS", "application/octet-stream")},
        data={"targets": "web-hero"},
    )
    assert response.status_code == 422


def test_psd_upload_rejects_unknown_target_before_storing(client, store):
    response = client.post(
        "/api/v1/jobs/psd",
        files={"psd": ("banner.psd", b"8BPS", "application/octet-stream")},
        data={"targets": json.dumps(["billboard"])},
    )
    assert response.status_code == 422
    assert not any(store.base_dir.iterdir())


def test_psd_upload_rejects_unreadable_documents(client, store):
    response = client.post(
        "/api/v1/jobs/psd",
        files={"psd": ("banner.psd", b"definitely not a photoshop file", "application/octet-stream")},
        data={"targets": json.dumps(["web-hero"])},
    )
    assert response.status_code == 422
    assert "source.psd" in response.json()["detail"]
