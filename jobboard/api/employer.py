"""
Employer pages: application review and job management.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response

from jobboard.api.boards import board_errors, get_application_board, get_job_management_board
from jobboard.schemas.application import (
    ApplicationCard,
    ApplicationGroup,
    EmployerApplicationsPage,
    StatusUpdate,
)
from jobboard.schemas.job import JobCard, JobGroup, JobUpdate, ManageJobsPage
from jobboard.services.cv_download import CVDownloadError, content_disposition
from jobboard.services.employer_applications import EmployerApplicationBoard, review_card
from jobboard.services.job_boards import JobManagementBoard, job_card
from jobboard.services.state_machine import ApplicationAction, JobAction

logger = logging.getLogger(__name__)
router = APIRouter()


# ============================================================
# Applications
# ============================================================

@router.get("/applications", response_model=EmployerApplicationsPage)
async def list_applications(
    highlight: Optional[str] = None,
    board: EmployerApplicationBoard = Depends(get_application_board)
):
    """
    All applications to the employer's jobs, grouped by job title.

    `highlight` marks one application, e.g. when arriving from a notification.
    """
    await board.load()
    if highlight:
        board.highlight(highlight)

    groups = [
        ApplicationGroup(
            job_title=title,
            applications=[review_card(board, application) for application in applications],
        )
        for title, applications in board.grouped().items()
    ]
    return EmployerApplicationsPage(
        total=len(board.items),
        groups=groups,
        highlighted_application_id=board.highlighted_id,
    )


@router.get("/applications/{application_id}")
async def application_detail(
    application_id: str,
    board: EmployerApplicationBoard = Depends(get_application_board)
):
    """Full application for the detail overlay."""
    await board.load()
    with board_errors():
        application = board.open_detail(application_id)
    return {
        "application": application,
        "actions": board.actions_for(application),
    }


@router.post("/applications/{application_id}/{action}", response_model=ApplicationCard)
async def update_application_status(
    application_id: str,
    action: ApplicationAction,
    update: Optional[StatusUpdate] = None,
    board: EmployerApplicationBoard = Depends(get_application_board)
):
    """
    Shortlist, reject or hire an applicant.

    Returns:
        200: Updated application card
        404: Application not on this employer's board
        409: Action not offered for the application's status
        502: Backend refused the update
    """
    await board.load()
    message = update.message if update else None
    with board_errors():
        application = await board.update_status(application_id, action, message)
    return review_card(board, application)


@router.get("/applications/{application_id}/cv")
async def download_cv(
    application_id: str,
    board: EmployerApplicationBoard = Depends(get_application_board)
):
    """The applicant's CV as a file download."""
    await board.load()
    with board_errors():
        try:
            cv = await board.download_cv(application_id)
        except CVDownloadError as e:
            logger.error(f"CV download failed for application {application_id}: {e.message}")
            raise HTTPException(status_code=e.status_code or 502, detail=e.message)

    return Response(
        content=cv.content,
        media_type=cv.content_type,
        headers={"Content-Disposition": content_disposition(cv.filename)},
    )


# ============================================================
# Job management
# ============================================================

@router.get("/jobs", response_model=ManageJobsPage)
async def list_jobs(
    search: str = "",
    status: str = "all",
    board: JobManagementBoard = Depends(get_job_management_board)
):
    """The employer's postings, filtered and grouped by title."""
    await board.load()
    jobs = board.filtered(search, status)
    groups = [
        JobGroup(title=title, jobs=[job_card(board, job) for job in grouped_jobs])
        for title, grouped_jobs in board.grouped(jobs).items()
    ]
    return ManageJobsPage(total=len(jobs), stats=board.stats(), groups=groups)


@router.put("/jobs/{job_id}", response_model=JobCard)
async def edit_job(
    job_id: str,
    changes: JobUpdate,
    board: JobManagementBoard = Depends(get_job_management_board)
):
    await board.load()
    with board_errors():
        job = await board.edit(job_id, changes.model_dump(exclude_unset=True))
    return job_card(board, job)


@router.post("/jobs/{job_id}/{action}", response_model=JobCard)
async def change_job_status(
    job_id: str,
    action: JobAction,
    board: JobManagementBoard = Depends(get_job_management_board)
):
    """Activate, close or move a posting back to draft."""
    await board.load()
    with board_errors():
        job = await board.change_status(job_id, action)
    return job_card(board, job)


@router.delete("/jobs/{job_id}")
async def delete_job(
    job_id: str,
    confirm: bool = False,
    board: JobManagementBoard = Depends(get_job_management_board)
):
    """
    Delete a posting.

    Returns:
        200: Deleted
        409: Not confirmed; detail carries the confirmation prompt
    """
    await board.load()
    with board_errors():
        await board.delete(job_id, confirmed=confirm)
    return {"message": "Job deleted successfully"}
