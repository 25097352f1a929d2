from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from nursejobs.main import app
from nursejobs.services.repository import PostgresJobStore, get_repository
from nursejobs.services.store import InMemoryJobStore


@pytest.fixture
def api_client(store: InMemoryJobStore) -> Iterator[TestClient]:
    app.dependency_overrides[get_repository] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_listing_page_returns_page_result(api_client: TestClient) -> None:
    response = api_client.get("/jobs/nursing/ca")
    assert response.status_code == 200
    payload = response.json()
    assert payload["page_type"] == "state"
    assert payload["canonical_path"] == "/jobs/nursing/ca"
    assert payload["total_jobs"] == 8
    assert payload["pagination"]["total"] == 8
    assert {bucket["slug"] for bucket in payload["stats"]["cities"]} == {"los-angeles", "san-diego"}


def test_alias_slugs_redirect_to_canonical_path(api_client: TestClient) -> None:
    response = api_client.get("/jobs/nursing/ca/los-angeles/icu/prn?page=2&limit=5", follow_redirects=False)
    assert response.status_code == 301
    assert response.headers["location"] == "/jobs/nursing/ca/los-angeles/icu/per-diem?page=2&limit=5"

    response = api_client.get("/jobs/nursing/California", follow_redirects=False)
    assert response.status_code == 301
    assert response.headers["location"] == "/jobs/nursing/ca"


def test_retired_specialty_slugs_redirect(api_client: TestClient) -> None:
    response = api_client.get("/jobs/nursing/specialty/rehab", follow_redirects=False)
    assert response.status_code == 301
    assert response.headers["location"] == "/jobs/nursing/specialty/rehabilitation"

    response = api_client.get("/jobs/nursing/ca/step-down?page=2", follow_redirects=False)
    assert response.status_code == 301
    assert response.headers["location"] == "/jobs/nursing/ca/stepdown?page=2"


def test_unknown_listing_values_are_not_found(api_client: TestClient, store: InMemoryJobStore) -> None:
    response = api_client.get("/jobs/nursing/ca/specialty/not-a-real-specialty")
    assert response.status_code == 404
    assert store.calls == []

    assert api_client.get("/jobs/nursing/ca/atlantis").status_code == 404
    assert api_client.get("/jobs/nursing/employer/nobody").status_code == 404
    assert api_client.get("/jobs/nursing/ca/salary/icu").status_code == 404
    assert api_client.get("/jobs/nursing/job-type/travel/salary").status_code == 404


def test_page_and_limit_are_validated(api_client: TestClient) -> None:
    assert api_client.get("/jobs/nursing/ca?limit=1000").status_code == 422
    assert api_client.get("/jobs/nursing/ca?limit=0").status_code == 422
    assert api_client.get("/jobs/nursing/ca?page=0").status_code == 422

    response = api_client.get("/jobs/nursing/ca?page=2&limit=3")
    assert response.status_code == 200
    assert [job["id"] for job in response.json()["jobs"]] == ["4", "5", "6"]


def test_job_detail_route(api_client: TestClient) -> None:
    response = api_client.get("/jobs/nursing/job-3")
    assert response.status_code == 200
    payload = response.json()
    assert payload["job"]["id"] == "3"
    assert payload["job"]["employer"]["slug"] == "st-lukes"
    assert len(payload["related_jobs"]) == 5

    assert api_client.get("/jobs/nursing/no-such-job").status_code == 404


def test_salary_route(api_client: TestClient) -> None:
    response = api_client.get("/jobs/nursing/ca/salary")
    assert response.status_code == 200
    payload = response.json()
    assert payload["page_type"] == "state-salary"
    assert payload["salary"]["job_count"] == 3
    assert payload["salary"]["hourly"]["max"] == 80.0


def test_browse_route(api_client: TestClient) -> None:
    response = api_client.get("/jobs/nursing")
    assert response.status_code == 200
    payload = response.json()
    assert payload["total_jobs"] == 10
    assert [bucket["value"] for bucket in payload["states"]] == ["CA", "TX"]


def test_page_inventory_route(api_client: TestClient) -> None:
    response = api_client.get("/index/pages")
    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == len(payload["pages"])
    paths = {page["path"] for page in payload["pages"]}
    assert "/jobs/nursing/ca/los-angeles/icu/salary" in paths


def test_unconfigured_database_returns_503() -> None:
    app.dependency_overrides[get_repository] = lambda: PostgresJobStore(
        database_url=None, min_pool_size=1, max_pool_size=1
    )
    try:
        client = TestClient(app)
        assert client.get("/jobs/nursing/ca").status_code == 503
        assert client.get("/jobs/nursing").status_code == 503
        assert client.get("/index/pages").status_code == 503
    finally:
        app.dependency_overrides.clear()
