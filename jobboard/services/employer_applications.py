"""
Employer application review board.

Lists every application across the employer's postings grouped by job title,
opens one application in a detail overlay, moves applications through the
review workflow and downloads applicant CVs.
"""
import logging
import time
from typing import Callable, Hashable, Optional

from jobboard.config import settings
from jobboard.schemas.application import Application, ApplicationCard
from jobboard.services.api_client import JobBoardAPI
from jobboard.services.application_tracker import format_date
from jobboard.services.cv_download import DownloadedCV, fetch_cv
from jobboard.services.state_machine import (
    APPLICATION_WORKFLOW,
    ApplicationAction,
    ApplicationStatus,
)
from jobboard.services.status_board import StatusBoard, group_by
from jobboard.services.status_display import status_style

logger = logging.getLogger(__name__)

UNKNOWN_JOB = "Unknown Job"


def preview(text: Optional[str], length: int = settings.cover_letter_preview_length) -> str:
    """Shorten long text for list cards."""
    text = text or ""
    if len(text) <= length:
        return text
    return f"{text[:length]}..."


class EmployerApplicationBoard(StatusBoard[Application]):
    entity = "application"
    reason_field = "response_message"

    def __init__(
        self,
        api: JobBoardAPI,
        employer_id: int | str,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(api, APPLICATION_WORKFLOW)
        self.employer_id = employer_id
        self.selected: Optional[Application] = None
        self._clock = clock
        self._highlight_id: Optional[Hashable] = None
        self._highlight_until = 0.0

    async def _fetch(self) -> list[dict]:
        return await self.api.get_employer_applications(self.employer_id)

    def _parse(self, raw: dict) -> Application:
        return Application.model_validate(raw)

    async def _send_transition(
        self,
        item: Application,
        status: ApplicationStatus,
        reason: Optional[str],
    ) -> dict:
        return await self.api.update_application_status(item.id, status.value, reason)

    def grouped(self) -> dict[str, list[Application]]:
        """Applications bucketed by job title."""
        return group_by(self.items, lambda application: application.job_title, UNKNOWN_JOB)

    # Detail overlay

    def open_detail(self, application_id: Hashable) -> Application:
        self.selected = self.get(application_id)
        return self.selected

    def close_detail(self) -> None:
        self.selected = None

    async def update_status(
        self,
        application_id: Hashable,
        action: ApplicationAction,
        message: Optional[str] = None,
    ) -> Application:
        """Apply an employer action; closes the overlay if it showed this application."""
        updated = await self.transition(application_id, action, message)
        if self.selected is not None and str(self.selected.id) == str(application_id):
            self.close_detail()
        return updated

    async def shortlist(self, application_id: Hashable, message: Optional[str] = None) -> Application:
        return await self.update_status(application_id, ApplicationAction.SHORTLIST, message)

    async def reject(self, application_id: Hashable, message: Optional[str] = None) -> Application:
        return await self.update_status(application_id, ApplicationAction.REJECT, message)

    async def hire(self, application_id: Hashable, message: Optional[str] = None) -> Application:
        return await self.update_status(application_id, ApplicationAction.HIRE, message)

    # Highlight after navigation

    def highlight(self, application_id: Hashable) -> None:
        self._highlight_id = application_id
        self._highlight_until = self._clock() + settings.highlight_seconds

    @property
    def highlighted_id(self) -> Optional[Hashable]:
        if self._highlight_id is None:
            return None
        if self._clock() >= self._highlight_until:
            self._highlight_id = None
            return None
        return self._highlight_id

    def is_highlighted(self, application: Application) -> bool:
        highlighted = self.highlighted_id
        return highlighted is not None and str(highlighted) == str(application.id)

    # CV

    async def download_cv(self, application_id: Hashable) -> DownloadedCV:
        application = self.get(application_id)
        return await self._track(
            fetch_cv(self.api, application.cv_file_path, application.full_name or "Applicant")
        )


def review_card(board: EmployerApplicationBoard, application: Application) -> ApplicationCard:
    return ApplicationCard(
        id=application.id,
        job_id=application.job_id,
        job_title=application.job_title or UNKNOWN_JOB,
        company_name=application.company_name,
        full_name=application.full_name,
        email=application.email,
        cover_letter_preview=preview(application.cover_letter),
        status=application.status,
        badge=status_style("application", application.status),
        applied_on=format_date(application.applied_at),
        response_message=application.response_message,
        actions=board.actions_for(application),
        highlighted=board.is_highlighted(application),
    )
