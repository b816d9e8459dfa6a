"""
Tests for the admin pages.

Tests cover:
- Moderation tabs and actions
- Missing reason and unknown tab errors
- Approval blocked by the payment check
- All-jobs filters
- Confirmed deletion
"""
import pytest
from httpx import AsyncClient

from tests.conftest import make_job


@pytest.fixture
def pending_jobs(backend):
    jobs = [make_job(1), make_job(2, title="Designer")]
    backend.on("GET", "/admin/jobs/moderation", json={"success": True, "jobs": jobs})
    return jobs


@pytest.fixture
def all_jobs(backend):
    jobs = [
        make_job(10, status="pending"),
        make_job(11, status="active", title="Designer", category_name="Design"),
        make_job(12, status="closed", title="QA Engineer"),
    ]
    backend.on("GET", "/admin/jobs/all", json={"success": True, "jobs": jobs})
    return jobs


# ============================================================
# MODERATION
# ============================================================

@pytest.mark.asyncio
async def test_moderation_queue(async_client: AsyncClient, backend, admin, pending_jobs):
    response = await async_client.get("/admin/moderation")

    assert response.status_code == 200
    data = response.json()
    assert data["filter"] == "pending"
    assert data["counts"]["pending"] == 2
    assert [job["id"] for job in data["jobs"]] == [1, 2]
    assert data["jobs"][0]["badge"]["color"] == "#ffc107"
    assert backend.requests[0].url.params["status"] == "pending"


@pytest.mark.asyncio
async def test_unknown_moderation_tab(async_client: AsyncClient, backend, admin):
    response = await async_client.get("/admin/moderation", params={"status": "archived"})

    assert response.status_code == 400
    assert backend.requests == []


@pytest.mark.asyncio
async def test_approve_from_queue(async_client: AsyncClient, backend, admin, pending_jobs):
    backend.on("PUT", "/admin/jobs/1/status", json={"success": True})

    response = await async_client.post("/admin/moderation/1/approve")

    assert response.status_code == 200
    assert response.json()["status"] == "approved"


@pytest.mark.asyncio
async def test_flag_needs_reason(async_client: AsyncClient, backend, admin, pending_jobs):
    response = await async_client.post("/admin/moderation/2/flag")

    assert response.status_code == 400
    assert backend.sent("PUT", "/admin/jobs/2/status") == []

    backend.on("PUT", "/admin/jobs/2/status", json={"success": True})
    response = await async_client.post("/admin/moderation/2/flag", json={"reason": "Looks like spam"})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "flagged"
    assert data["moderation_reason"] == "Looks like spam"


# ============================================================
# ALL JOBS
# ============================================================

@pytest.mark.asyncio
async def test_all_jobs_page(async_client: AsyncClient, admin, all_jobs):
    response = await async_client.get("/admin/jobs", params={"category": "Design"})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["jobs"][0]["id"] == 11
    assert data["stats"] == {"total": 3, "active": 1, "pending": 1, "closed": 1}
    assert data["categories"] == ["Engineering", "Design"]


@pytest.mark.asyncio
async def test_approve_blocked_by_payment(async_client: AsyncClient, backend, admin, all_jobs):
    backend.on("GET", "/admin/jobs/10/payment-status", json={"success": False, "message": "unpaid"})

    response = await async_client.post("/admin/jobs/10/approve")

    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot approve job: unpaid"
    assert backend.sent("PUT", "/admin/jobs/10/status") == []


@pytest.mark.asyncio
async def test_approve_paid_job(async_client: AsyncClient, backend, admin, all_jobs):
    backend.on("GET", "/admin/jobs/10/payment-status", json={"success": True, "message": "Paid"})
    backend.on("PUT", "/admin/jobs/10/status", json={"success": True})

    response = await async_client.post("/admin/jobs/10/approve")

    assert response.status_code == 200
    assert response.json()["status"] == "approved"


@pytest.mark.asyncio
async def test_reject_with_reason(async_client: AsyncClient, backend, admin, all_jobs):
    backend.on("PUT", "/admin/jobs/11/status", json={"success": True})

    response = await async_client.post("/admin/jobs/11/reject", json={"reason": "Duplicate posting"})

    assert response.status_code == 200
    [request] = backend.sent("PUT", "/admin/jobs/11/status")
    assert backend.body(request) == {"status": "rejected", "reason": "Duplicate posting"}


@pytest.mark.asyncio
async def test_delete_job(async_client: AsyncClient, backend, admin, all_jobs):
    backend.on("DELETE", "/jobs/12", json={"success": True})

    response = await async_client.delete("/admin/jobs/12")
    assert response.status_code == 409
    assert "permanently delete the job \"QA Engineer\"" in response.json()["detail"]

    response = await async_client.delete("/admin/jobs/12", params={"confirm": "true"})
    assert response.status_code == 200
    assert len(backend.sent("DELETE", "/jobs/12")) == 1
