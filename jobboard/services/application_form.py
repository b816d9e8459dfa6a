"""
Job application form: pre-fill, client-side validation and submission.

Nothing is stored locally. A failed submission has to be resubmitted in full.
"""
import logging
import re
from typing import Optional

from jobboard.config import settings
from jobboard.schemas.application import (
    ApplicationForm,
    ApplicationSubmitted,
    CVFile,
    FormPrefill,
    JobContext,
)
from jobboard.schemas.auth import SessionUser
from jobboard.services.api_client import APIError, JobBoardAPI, RequestTimeoutError

logger = logging.getLogger(__name__)

ALLOWED_CV_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
MAX_CV_SIZE = settings.cv_max_size_mb * 1024 * 1024
EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

GENERIC_FAILURE = "Failed to submit application. Please try again."


class ApplicationValidationError(Exception):
    """Form rejected before any request was sent."""

    def __init__(self, errors: dict[str, str]):
        super().__init__("; ".join(f"{field}: {message}" for field, message in errors.items()))
        self.errors = errors


class SubmissionError(Exception):
    """The backend did not accept the application."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def prefill_from_user(user: Optional[SessionUser]) -> FormPrefill:
    """
    Initial form values for the logged-in user.

    When the session knows the user's email the field is read-only, so the
    application is filed under the account that is logged in.
    """
    if user is None:
        return FormPrefill()
    return FormPrefill(
        full_name=user.name or "",
        email=user.email or "",
        phone=user.phone or "",
        email_read_only=bool(user.email),
    )


def validate_cv_file(cv: Optional[CVFile]) -> Optional[str]:
    """Return the error message for a CV upload, or None if it is acceptable."""
    if cv is None:
        return "CV/Resume is required"
    if cv.content_type not in ALLOWED_CV_TYPES:
        return "Please upload a PDF or Word document"
    if cv.size > MAX_CV_SIZE:
        return f"File size must be less than {settings.cv_max_size_mb}MB"
    return None


def validate_application(form: ApplicationForm, cv: Optional[CVFile]) -> dict[str, str]:
    """Field-level errors keyed by form field; empty when the form can be sent."""
    errors: dict[str, str] = {}

    if not form.full_name.strip():
        errors["full_name"] = "Full name is required"

    if not form.email.strip():
        errors["email"] = "Email is required"
    elif not EMAIL_PATTERN.search(form.email):
        errors["email"] = "Please enter a valid email"

    if not form.phone.strip():
        errors["phone"] = "Phone number is required"

    cover_letter = form.cover_letter.strip()
    if not cover_letter:
        errors["cover_letter"] = "Cover letter is required"
    elif len(cover_letter) < settings.cover_letter_min_length:
        errors["cover_letter"] = (
            f"Cover letter must be at least {settings.cover_letter_min_length} characters"
        )

    cv_error = validate_cv_file(cv)
    if cv_error:
        errors["cv_file"] = cv_error

    if not form.experience.strip():
        errors["experience"] = "Experience information is required"

    return errors


def _multipart_fields(job: JobContext, form: ApplicationForm) -> dict[str, str]:
    return {
        "jobId": str(job.id),
        "fullName": form.full_name,
        "email": form.email,
        "phone": form.phone,
        "coverLetter": form.cover_letter,
        "experience": form.experience,
        "expectedSalary": form.expected_salary or "",
        "availableStartDate": form.available_start_date.isoformat() if form.available_start_date else "",
        "additionalInfo": form.additional_info or "",
    }


def describe_submission_error(error: APIError) -> str:
    """Turn a backend failure into the message shown to the applicant."""
    if isinstance(error, RequestTimeoutError):
        return error.message
    if error.details:
        lines = [
            f"{detail.get('path') or detail.get('param')}: {detail.get('msg')}"
            for detail in error.details
            if isinstance(detail, dict)
        ]
        if lines:
            return "Validation failed:\n" + "\n".join(lines)
    if error.status_code is not None and error.message:
        return error.message
    return GENERIC_FAILURE


async def submit_application(
    api: JobBoardAPI,
    job: JobContext,
    form: ApplicationForm,
    cv: Optional[CVFile],
    user: Optional[SessionUser] = None,
) -> ApplicationSubmitted:
    """
    Validate and submit an application.

    Raises:
        ApplicationValidationError: Form invalid; no request was sent
        SubmissionError: The backend refused or could not be reached
    """
    if user is not None and user.email:
        # Read-only field: always the logged-in account's address
        form = form.model_copy(update={"email": user.email})

    errors = validate_application(form, cv)
    if errors:
        raise ApplicationValidationError(errors)

    logger.info(f"Submitting application for job {job.id} as {form.email}")
    try:
        result = await api.submit_application(_multipart_fields(job, form), cv)
    except APIError as e:
        logger.error(f"Error submitting application for job {job.id}: {e.message}")
        raise SubmissionError(describe_submission_error(e)) from e

    application = result.get("application") or {}
    if application.get("id") is None:
        raise SubmissionError(result.get("error") or GENERIC_FAILURE)

    logger.info(f"Application {application['id']} submitted for job {job.id}")
    return ApplicationSubmitted(
        application_id=application["id"],
        job_id=job.id,
        job_title=job.title,
        company=job.company,
        form=form,
    )
