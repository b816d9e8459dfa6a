"""
Tests for the employer pages.

Tests cover:
- Application board grouped by job title, with highlight
- Status actions and their error codes
- CV download as an attachment
- Job management listing, status changes, edits and deletion
"""
from urllib.parse import quote

import pytest
from httpx import AsyncClient

from tests.conftest import make_application, make_job


@pytest.fixture
def applications(backend):
    items = [
        make_application(41, job_title="A"),
        make_application(42, job_title="B", full_name="Ravi Patel"),
        make_application(43, job_title="A", status="shortlisted"),
    ]
    backend.on("GET", "/applications/employer/3", json={"success": True, "applications": items})
    return items


# ============================================================
# APPLICATIONS
# ============================================================

@pytest.mark.asyncio
async def test_applications_page(async_client: AsyncClient, employer, applications):
    response = await async_client.get("/employer/applications", params={"highlight": "42"})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert [group["job_title"] for group in data["groups"]] == ["A", "B"]
    assert [card["id"] for card in data["groups"][0]["applications"]] == [41, 43]
    assert data["highlighted_application_id"] == "42"

    card_42 = data["groups"][1]["applications"][0]
    assert card_42["highlighted"] is True
    assert card_42["actions"] == ["shortlist", "reject"]
    assert card_42["badge"]["icon"] == "fas fa-clock"


@pytest.mark.asyncio
async def test_applications_page_backend_error(async_client: AsyncClient, backend, employer):
    backend.on("GET", "/applications/employer/3", status_code=500, json={"error": "boom"})

    response = await async_client.get("/employer/applications")

    assert response.status_code == 200
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_application_detail(async_client: AsyncClient, employer, applications):
    response = await async_client.get("/employer/applications/43")

    assert response.status_code == 200
    data = response.json()
    assert data["application"]["cover_letter"] == applications[2]["cover_letter"]
    assert data["actions"] == ["hire"]


@pytest.mark.asyncio
async def test_shortlist(async_client: AsyncClient, backend, employer, applications):
    backend.on("PUT", "/applications/42/status", json={"success": True})

    response = await async_client.post(
        "/employer/applications/42/shortlist",
        json={"message": "We'd like to schedule an interview"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "shortlisted"
    assert data["response_message"] == "We'd like to schedule an interview"
    assert data["actions"] == ["hire"]

    [request] = backend.sent("PUT", "/applications/42/status")
    assert backend.body(request) == {"status": "shortlisted", "message": "We'd like to schedule an interview"}


@pytest.mark.asyncio
async def test_reject_without_message(async_client: AsyncClient, backend, employer, applications):
    backend.on("PUT", "/applications/41/status", json={"success": True})

    response = await async_client.post("/employer/applications/41/reject")

    assert response.status_code == 200
    assert response.json()["status"] == "rejected"


@pytest.mark.asyncio
async def test_invalid_action(async_client: AsyncClient, backend, employer, applications):
    response = await async_client.post("/employer/applications/41/hire")

    assert response.status_code == 409
    assert backend.sent("PUT", "/applications/41/status") == []


@pytest.mark.asyncio
async def test_unknown_action(async_client: AsyncClient, employer, applications):
    response = await async_client.post("/employer/applications/41/promote")

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_application(async_client: AsyncClient, employer, applications):
    response = await async_client.post("/employer/applications/999/shortlist")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_backend_refuses_update(async_client: AsyncClient, backend, employer, applications):
    backend.on("PUT", "/applications/42/status", status_code=500, json={"error": "Database unavailable"})

    response = await async_client.post("/employer/applications/42/shortlist")

    assert response.status_code == 502
    assert response.json()["detail"] == "Database unavailable"


@pytest.mark.asyncio
async def test_download_cv(async_client: AsyncClient, backend, employer, applications, sample_pdf):
    backend.on(
        "GET", "/applications/download-cv/cv-123.pdf",
        content=sample_pdf,
        headers={"Content-Type": "application/pdf"},
    )

    response = await async_client.get("/employer/applications/42/cv")

    assert response.status_code == 200
    assert response.content == sample_pdf
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="Ravi Patel_CV.pdf"'


@pytest.mark.asyncio
async def test_download_cv_non_latin_name(async_client: AsyncClient, backend, employer, sample_pdf):
    backend.on(
        "GET", "/applications/employer/3",
        json={"success": True, "applications": [make_application(42, full_name="አበበ ቢቂላ")]},
    )
    backend.on("GET", "/applications/download-cv/cv-123.pdf", content=sample_pdf)

    response = await async_client.get("/employer/applications/42/cv")

    assert response.status_code == 200
    assert response.content == sample_pdf
    assert response.headers["content-disposition"] == (
        "attachment; filename=\"_CV.pdf\"; filename*=UTF-8''" + quote("አበበ ቢቂላ_CV.pdf", safe="")
    )


@pytest.mark.asyncio
async def test_download_cv_name_with_quotes(async_client: AsyncClient, backend, employer, sample_pdf):
    backend.on(
        "GET", "/applications/employer/3",
        json={"success": True, "applications": [make_application(42, full_name='Jane "JD" Doe')]},
    )
    backend.on("GET", "/applications/download-cv/cv-123.pdf", content=sample_pdf)

    response = await async_client.get("/employer/applications/42/cv")

    assert response.status_code == 200
    assert response.headers["content-disposition"] == (
        "attachment; filename=\"Jane JD Doe_CV.pdf\"; filename*=UTF-8''Jane%20%22JD%22%20Doe_CV.pdf"
    )


@pytest.mark.asyncio
async def test_download_cv_forbidden(async_client: AsyncClient, backend, employer, applications):
    backend.on("GET", "/applications/download-cv/cv-123.pdf", status_code=403)

    response = await async_client.get("/employer/applications/42/cv")

    assert response.status_code == 403
    assert response.json()["detail"] == "You do not have permission to access this CV"


@pytest.mark.asyncio
async def test_download_empty_cv(async_client: AsyncClient, backend, employer, applications):
    backend.on("GET", "/applications/download-cv/cv-123.pdf", content=b"")

    response = await async_client.get("/employer/applications/42/cv")

    assert response.status_code == 502
    assert response.json()["detail"] == "CV file is empty"


# ============================================================
# JOB MANAGEMENT
# ============================================================

@pytest.fixture
def jobs(backend):
    items = [
        make_job(30, status="active", title="Backend Engineer"),
        make_job(31, status="draft", title="Backend Engineer", location="London"),
        make_job(32, status="closed", title="Designer"),
    ]
    backend.on("GET", "/jobs/employer/3", json={"success": True, "jobs": items})
    return items


@pytest.mark.asyncio
async def test_manage_jobs_page(async_client: AsyncClient, employer, jobs):
    response = await async_client.get("/employer/jobs")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["stats"] == {"active": 1, "closed": 1, "draft": 1, "total": 3}
    assert [group["title"] for group in data["groups"]] == ["Backend Engineer", "Designer"]
    assert data["groups"][0]["jobs"][0]["actions"] == ["close", "draft"]


@pytest.mark.asyncio
async def test_manage_jobs_filters(async_client: AsyncClient, employer, jobs):
    response = await async_client.get("/employer/jobs", params={"search": "london"})

    data = response.json()
    assert data["total"] == 1
    assert data["groups"][0]["jobs"][0]["id"] == 31


@pytest.mark.asyncio
async def test_close_job(async_client: AsyncClient, backend, employer, jobs):
    backend.on("PUT", "/jobs/30", json={"success": True})

    response = await async_client.post("/employer/jobs/30/close")

    assert response.status_code == 200
    assert response.json()["status"] == "closed"
    [request] = backend.sent("PUT", "/jobs/30")
    assert backend.body(request)["status"] == "closed"


@pytest.mark.asyncio
async def test_edit_job(async_client: AsyncClient, backend, employer, jobs):
    backend.on("PUT", "/jobs/32", json={"success": True})

    response = await async_client.put("/employer/jobs/32", json={"title": "Senior Designer"})

    assert response.status_code == 200
    assert response.json()["title"] == "Senior Designer"
    assert backend.body(backend.sent("PUT", "/jobs/32")[0])["location"] == "Remote"


@pytest.mark.asyncio
async def test_delete_job_needs_confirmation(async_client: AsyncClient, backend, employer, jobs):
    backend.on("DELETE", "/jobs/32", json={"success": True})

    response = await async_client.delete("/employer/jobs/32")

    assert response.status_code == 409
    assert response.json()["detail"] == (
        'Are you sure you want to delete the job "Designer"? This action cannot be undone.'
    )
    assert backend.sent("DELETE", "/jobs/32") == []

    response = await async_client.delete("/employer/jobs/32", params={"confirm": "true"})

    assert response.status_code == 200
    assert len(backend.sent("DELETE", "/jobs/32")) == 1
