"""
Admin pages: the moderation queue and the all-jobs overview.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends

from jobboard.api.boards import board_errors, get_admin_jobs_board, get_moderation_board
from jobboard.schemas.job import AdminJobsPage, JobCard, ModerationAction, ModerationPage
from jobboard.services.job_boards import AdminJobsBoard, JobModerationBoard, job_card
from jobboard.services.state_machine import JobAction

logger = logging.getLogger(__name__)
router = APIRouter()


# ============================================================
# Moderation queue
# ============================================================

@router.get("/moderation", response_model=ModerationPage)
async def moderation_queue(
    board: JobModerationBoard = Depends(get_moderation_board)
):
    """Jobs in the selected status tab (`?status=pending` by default)."""
    await board.load()
    return ModerationPage(
        filter=board.status_filter,
        counts=board.counts(),
        jobs=[job_card(board, job) for job in board.items],
    )


@router.post("/moderation/{job_id}/{action}", response_model=JobCard)
async def moderate_job(
    job_id: str,
    action: JobAction,
    body: Optional[ModerationAction] = None,
    board: JobModerationBoard = Depends(get_moderation_board)
):
    """
    Approve, reject or flag a job.

    Flagging, and rejecting an approved job, require a reason.

    Returns:
        200: Updated job card
        400: Reason missing
        409: Action not offered for the job's status
    """
    await board.load()
    reason = body.reason if body else None
    with board_errors():
        job = await board.moderate(job_id, action, reason)
    return job_card(board, job)


# ============================================================
# All jobs
# ============================================================

def _jobs_page(board: AdminJobsBoard, search: str, status: str, category: str) -> AdminJobsPage:
    jobs = board.filtered(search, status, category)
    return AdminJobsPage(
        total=len(jobs),
        stats=board.stats(),
        categories=board.categories(),
        jobs=[job_card(board, job) for job in jobs],
    )


@router.get("/jobs", response_model=AdminJobsPage)
async def all_jobs(
    search: str = "",
    status: str = "all",
    category: str = "all",
    board: AdminJobsBoard = Depends(get_admin_jobs_board)
):
    """Every job on the site with search, status and category filters."""
    await board.load()
    return _jobs_page(board, search, status, category)


@router.post("/jobs/{job_id}/approve", response_model=JobCard)
async def approve_job(
    job_id: str,
    board: AdminJobsBoard = Depends(get_admin_jobs_board)
):
    """
    Approve a job after the payment pre-check.

    Returns:
        200: Approved
        409: Payment check refused the approval, or job already live
    """
    await board.load()
    with board_errors():
        job = await board.approve(job_id)
    return job_card(board, job)


@router.post("/jobs/{job_id}/reject", response_model=JobCard)
async def reject_job(
    job_id: str,
    body: Optional[ModerationAction] = None,
    board: AdminJobsBoard = Depends(get_admin_jobs_board)
):
    await board.load()
    reason = body.reason if body else None
    with board_errors():
        job = await board.reject(job_id, reason)
    return job_card(board, job)


@router.delete("/jobs/{job_id}")
async def delete_job(
    job_id: str,
    confirm: bool = False,
    board: AdminJobsBoard = Depends(get_admin_jobs_board)
):
    """
    Permanently delete a job.

    Returns:
        200: Deleted
        409: Not confirmed; detail carries the confirmation prompt
    """
    await board.load()
    with board_errors():
        await board.delete(job_id, confirmed=confirm)
    return {"message": "Job deleted successfully"}
