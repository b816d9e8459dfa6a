"""
Job seeker pages: the application form and the "my applications" tracker.
"""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from jobboard.api.auth import (
    WRONG_AREA_REDIRECTS,
    get_api,
    get_optional_user,
    get_session_store,
    require_user_type,
)
from jobboard.schemas.application import (
    ApplicationForm,
    ApplicationSubmitted,
    CVFile,
    JobContext,
    MyApplicationsPage,
)
from jobboard.schemas.auth import SessionUser, UserType
from jobboard.schemas.job import Job
from jobboard.services.api_client import APIError, JobBoardAPI, RequestTimeoutError
from jobboard.services.application_form import (
    ApplicationValidationError,
    SubmissionError,
    prefill_from_user,
    submit_application,
)
from jobboard.services.application_tracker import fetch_my_applications, tracker_card
from jobboard.services.session import PageRedirect, SessionStore

logger = logging.getLogger(__name__)
router = APIRouter()


async def require_applicant(
    job_id: str,
    user: Optional[SessionUser] = Depends(get_optional_user),
    session: SessionStore = Depends(get_session_store)
) -> SessionUser:
    """
    Only logged-in job seekers may apply.

    Anonymous visitors are sent to login and brought back to this job after.
    """
    if user is None:
        await session.remember_redirect(f"/apply/{job_id}")
        raise PageRedirect("/login", "Please log in to apply for this job")
    if user.type != UserType.JOBSEEKER:
        raise PageRedirect(WRONG_AREA_REDIRECTS[user.type], "Only job seekers can apply for jobs")
    return user


@router.get("/apply/{job_id}")
async def application_page(
    job_id: str,
    user: SessionUser = Depends(require_applicant),
    api: JobBoardAPI = Depends(get_api)
):
    """
    The job being applied for plus the pre-filled form.

    Returns:
        200: Job and form defaults
        404: Job does not exist
        502: Backend error
    """
    try:
        raw_job = await api.fetch_job(job_id)
    except APIError as e:
        status_code = 404 if e.status_code == 404 else 502
        raise HTTPException(status_code=status_code, detail=e.message)

    return {
        "job": Job.model_validate(raw_job),
        "prefill": prefill_from_user(user),
    }


@router.post("/apply/{job_id}", response_model=ApplicationSubmitted, status_code=201)
async def apply(
    job_id: str,
    full_name: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    cover_letter: str = Form(""),
    experience: str = Form(""),
    expected_salary: Optional[str] = Form(None),
    available_start_date: Optional[date] = Form(None),
    additional_info: Optional[str] = Form(None),
    job_title: Optional[str] = Form(None),
    company: Optional[str] = Form(None),
    cv_file: Optional[UploadFile] = File(None),
    user: SessionUser = Depends(require_applicant),
    api: JobBoardAPI = Depends(get_api)
):
    """
    Submit an application with its CV.

    Returns:
        201: Application accepted; continue to /user/my-applications
        400: Form errors, keyed by field
        502: Backend refused the application
        504: Backend timed out
    """
    form = ApplicationForm(
        full_name=full_name,
        email=email,
        phone=phone,
        cover_letter=cover_letter,
        experience=experience,
        expected_salary=expected_salary,
        available_start_date=available_start_date,
        additional_info=additional_info,
    )

    cv = None
    if cv_file is not None and cv_file.filename:
        cv = CVFile(
            filename=cv_file.filename,
            content_type=cv_file.content_type or "application/octet-stream",
            content=await cv_file.read(),
        )

    job = JobContext(id=job_id, title=job_title, company=company)
    try:
        return await submit_application(api, job, form, cv, user=user)
    except ApplicationValidationError as e:
        raise HTTPException(status_code=400, detail={"errors": e.errors})
    except SubmissionError as e:
        status_code = 504 if isinstance(e.__cause__, RequestTimeoutError) else 502
        raise HTTPException(status_code=status_code, detail=e.message)


@router.get("/user/my-applications", response_model=MyApplicationsPage)
async def my_applications(
    user: SessionUser = Depends(require_user_type(UserType.JOBSEEKER)),
    api: JobBoardAPI = Depends(get_api)
):
    """Every application filed under the logged-in seeker's email."""
    applications = await fetch_my_applications(api, user.email)
    return MyApplicationsPage(
        total=len(applications),
        applications=[tracker_card(application) for application in applications],
    )
