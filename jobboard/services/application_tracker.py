"""Read-only view of a job seeker's own applications."""
import logging
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from jobboard.schemas.application import Application, ApplicationCard
from jobboard.services.api_client import APIError, JobBoardAPI
from jobboard.services.status_display import status_style

logger = logging.getLogger(__name__)


def format_date(value: Optional[str]) -> Optional[str]:
    """'Mar 5, 2024, 02:30 PM' style, or the raw value if it is not a timestamp."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return f"{parsed:%b} {parsed.day}, {parsed:%Y, %I:%M %p}"


def job_link(application: Application) -> str:
    return f"/job/{application.job_id or application.id}"


def tracker_card(application: Application) -> ApplicationCard:
    return ApplicationCard(
        id=application.id,
        job_id=application.job_id,
        job_title=application.job_title,
        company_name=application.company_name,
        location=application.location,
        salary=application.salary,
        status=application.status,
        badge=status_style("application", application.status),
        applied_on=format_date(application.applied_at),
        response_message=application.response_message,
        job_link=job_link(application),
    )


async def fetch_my_applications(api: JobBoardAPI, email: str) -> list[Application]:
    """
    Applications filed under the seeker's email.

    Falls back to an empty list on any backend failure.
    """
    logger.info(f"Fetching applications for user: {email}")
    try:
        raw_items = await api.get_user_applications(email)
    except APIError as e:
        logger.error(f"Error fetching applications for {email}: {e.message}")
        return []
    applications = []
    for raw in raw_items:
        try:
            applications.append(Application.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed application for {email}: {str(e)}")
    logger.info(f"Fetched {len(applications)} application(s) for {email}")
    return applications
