import time

import pytest
from fastapi.testclient import TestClient

from dataset_insight_api.core.cache import CacheService
from dataset_insight_api.core.config import settings
from dataset_insight_api.main import app, build_job_service
from dataset_insight_api.services.storage import LocalFileStorage


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_ROOT", str(tmp_path))
    with TestClient(app) as client:
        cache = CacheService(version="api-test")
        app.state.cache = cache
        app.state.job_service = build_job_service(
            LocalFileStorage(str(tmp_path)), cache, base_delay=0, warmup=0
        )
        yield client


def _wait_for(client, job_id, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        job = client.get(f"/api/v1/jobs/{job_id}").json()
        if job["status"] in ("COMPLETED", "FAILED"):
            return job
        time.sleep(0.02)
    raise AssertionError(f"Job {job_id} did not finish")


def _submit(client, content):
    response = client.post(
        "/api/v1/jobs/", json={"content": content, "file_name": "sales.csv", "user_id": "u1"}
    )
    assert response.status_code == 202
    return response.json()


def test_health(client):
    assert client.get("/healthz").json()["status"] == "ok"
    assert client.get("/readyz").status_code == 200


def test_sync_analysis_and_cache(client, sales_csv):
    first = client.post("/api/v1/analysis/run", json={"content": sales_csv})
    assert first.status_code == 200
    body = first.json()
    assert body["cached"] is False
    assert body["summary"]["row_count"] == 11
    assert body["summary"]["dashboard"]["kpis"][0]["label"] == "Total units"

    again = client.post("/api/v1/analysis/run", json={"content": sales_csv}).json()
    assert again["cached"] is True
    assert again["cache_key"] == body["cache_key"]

    stored = client.get(f"/api/v1/analysis/cache/{body['cache_key']}")
    assert stored.status_code == 200
    assert client.get("/api/v1/analysis/cache/unknown").status_code == 404


def test_sync_analysis_rejects_empty_input(client):
    response = client.post("/api/v1/analysis/run", json={"content": "\n\n"})
    assert response.status_code == 400
    assert response.json()["detail"] == "File is empty"


def test_job_flow(client, sales_csv):
    submitted = _submit(client, sales_csv)
    assert submitted["status"] == "PENDING"
    assert "data_stack" not in submitted

    job = _wait_for(client, submitted["id"])
    assert job["status"] == "COMPLETED"
    assert job["snapshot_count"] == 1
    assert job["summary"]["duplicate_count"] == 1

    listed = client.get("/api/v1/jobs/").json()
    assert [j["id"] for j in listed] == [job["id"]]

    cleaned = client.post(f"/api/v1/jobs/{job['id']}/actions/clean_data")
    assert cleaned.status_code == 200
    assert cleaned.json()["snapshot_count"] == 2

    undone = client.post(f"/api/v1/jobs/{job['id']}/actions/undo").json()
    assert undone["snapshot_count"] == 1

    csv_text = client.get(f"/api/v1/jobs/{job['id']}/export/csv").text
    assert csv_text.splitlines()[0] == "date,region,product,units,revenue,promo"
    assert len(csv_text.splitlines()) == 12

    rebuilt = client.post(f"/api/v1/jobs/{job['id']}/actions/build_dashboard").json()
    assert rebuilt["summary"]["dashboard"] is not None
    report = client.get(f"/api/v1/jobs/{job['id']}/export/dashboard")
    assert report.text.startswith("DASHBOARD KPI SUMMARY")

    plot = client.post("/api/v1/plots/", json={"job_id": job["id"], "chart_index": 0})
    assert plot.status_code == 200
    assert "$schema" in plot.json()


def test_job_errors(client, sales_csv):
    assert client.get("/api/v1/jobs/missing").status_code == 404
    assert client.post("/api/v1/jobs/missing/actions/undo").status_code == 404

    job = _wait_for(client, _submit(client, sales_csv)["id"])
    assert client.post(f"/api/v1/jobs/{job['id']}/actions/explode").status_code == 400

    plot = client.post("/api/v1/plots/", json={"job_id": job["id"], "chart_index": 99})
    assert plot.status_code == 404


def test_failed_job_reports_error(client):
    job = _wait_for(client, _submit(client, " \n ")["id"])

    assert job["status"] == "FAILED"
    assert job["error"].startswith("Ingestion failed")
    assert client.post(f"/api/v1/jobs/{job['id']}/actions/clean_data").status_code == 409

    assert client.post(f"/api/v1/jobs/{job['id']}/retry").status_code == 409
