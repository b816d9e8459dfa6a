"""
Job boards: admin moderation queue, admin all-jobs page and the employer's
own job management page. All three move the same job status field, each
through its own transition table.
"""
import logging
from typing import Hashable, Optional

from jobboard.schemas.job import Job, JobCard
from jobboard.services.api_client import APIError, JobBoardAPI
from jobboard.services.application_tracker import format_date
from jobboard.services.employer_applications import preview
from jobboard.services.state_machine import (
    ADMIN_JOB_WORKFLOW,
    JOB_MANAGEMENT_WORKFLOW,
    JOB_MODERATION_WORKFLOW,
    JobAction,
    JobStatus,
)
from jobboard.services.status_board import StatusBoard, group_by
from jobboard.services.status_display import status_style

logger = logging.getLogger(__name__)

MODERATION_FILTERS = ("pending", "approved", "rejected", "flagged", "all")

# Defaults filled in for sparse admin listings
JOB_DEFAULTS = {
    "title": "Untitled Job",
    "location": "Unknown Location",
    "description": "No description available",
    "category_name": "Uncategorized",
    "company_name": "Unknown Company",
}


class ApprovalBlockedError(Exception):
    """Payment pre-check refused the approval."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfirmationRequiredError(Exception):
    """An irreversible action was requested without confirmation."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def with_defaults(raw: dict, status_default: str) -> dict:
    filled = dict(raw)
    for field, default in JOB_DEFAULTS.items():
        filled[field] = filled.get(field) or default
    filled["status"] = filled.get("status") or status_default
    return filled


def status_counts(jobs: list[Job], statuses: tuple[str, ...]) -> dict[str, int]:
    return {status: sum(1 for job in jobs if job.status.value == status) for status in statuses}


class JobBoard(StatusBoard[Job]):
    entity = "job"
    reason_field = "moderation_reason"

    def __init__(self, api: JobBoardAPI, workflow):
        super().__init__(api, workflow)
        self.selected: Optional[Job] = None

    def _parse(self, raw: dict) -> Job:
        return Job.model_validate(raw)

    def open_detail(self, job_id: Hashable) -> Job:
        self.selected = self.get(job_id)
        return self.selected

    def close_detail(self) -> None:
        self.selected = None

    async def _delete(self, job_id: Hashable, confirmed: bool, prompt: str) -> None:
        """
        Remove a job for good.

        Raises:
            ConfirmationRequiredError: If the caller has not confirmed
        """
        job = self.get(job_id)
        if not confirmed:
            raise ConfirmationRequiredError(prompt.format(title=job.title))
        await self._track(self.api.delete_job(job.id))
        self.items = [item for item in self.items if str(item.id) != str(job_id)]
        if self.selected is not None and str(self.selected.id) == str(job_id):
            self.close_detail()
        logger.info(f"Job {job_id} deleted")


class JobModerationBoard(JobBoard):
    """Admin moderation queue filtered by status tab."""

    def __init__(self, api: JobBoardAPI, status_filter: str = "pending"):
        super().__init__(api, JOB_MODERATION_WORKFLOW)
        if status_filter not in MODERATION_FILTERS:
            raise ValueError(f"Unknown moderation filter: {status_filter}")
        self.status_filter = status_filter

    async def _fetch(self) -> list[dict]:
        return await self.api.get_jobs_for_moderation(self.status_filter)

    async def _send_transition(self, item: Job, status: JobStatus, reason: Optional[str]) -> dict:
        return await self.api.update_job_status(item.id, status.value, reason)

    def counts(self) -> dict[str, int]:
        return status_counts(self.items, MODERATION_FILTERS[:-1])

    async def moderate(self, job_id: Hashable, action: JobAction, reason: Optional[str] = None) -> Job:
        updated = await self.transition(job_id, action, reason)
        self.close_detail()
        return updated


class AdminJobsBoard(JobBoard):
    """
    Every job on the site, with client-side filters.

    Approval is gated by the backend's payment check. When the check itself
    cannot be completed the approval goes ahead (fail-open).
    """

    DELETE_PROMPT = 'Are you sure you want to permanently delete the job "{title}"? This action cannot be undone.'

    def __init__(self, api: JobBoardAPI):
        super().__init__(api, ADMIN_JOB_WORKFLOW)

    async def _fetch(self) -> list[dict]:
        try:
            jobs = await self.api.get_all_jobs()
            return [with_defaults(raw, "unknown") for raw in jobs]
        except APIError as e:
            logger.error(f"Admin job listing failed ({e.message}), falling back to public jobs")
            jobs = await self.api.list_jobs()
            return [with_defaults(raw, "active") for raw in jobs]

    async def _send_transition(self, item: Job, status: JobStatus, reason: Optional[str]) -> dict:
        try:
            return await self.api.update_job_status(item.id, status.value, reason)
        except APIError as e:
            if e.status_code is None or e.status_code < 400:
                raise
            logger.warning(f"Admin status endpoint failed for job {item.id} ({e.message}), trying jobs endpoint")
            return await self.api.update_job(
                item.id, {"status": status.value, "moderation_reason": reason or ""}
            )

    async def check_payment(self, job_id: Hashable) -> None:
        """
        Raises:
            ApprovalBlockedError: The backend reports the job cannot be approved
        """
        try:
            payment = await self.api.check_job_payment_status(job_id)
        except APIError as e:
            logger.warning(f"Payment check failed for job {job_id} ({e.message}), allowing approval anyway")
            return
        if not payment.success:
            raise ApprovalBlockedError(f"Cannot approve job: {payment.message}")
        logger.info(f"Payment status for job {job_id}: {payment.message}")

    async def approve(self, job_id: Hashable) -> Job:
        job = self.get(job_id)
        self.workflow.next_state(job.status, JobAction.APPROVE)
        await self.check_payment(job.id)
        updated = await self.transition(job_id, JobAction.APPROVE)
        self.close_detail()
        await self.load()
        return updated

    async def reject(self, job_id: Hashable, reason: Optional[str] = None) -> Job:
        updated = await self.transition(job_id, JobAction.REJECT, reason)
        self.close_detail()
        await self.load()
        return updated

    async def delete(self, job_id: Hashable, confirmed: bool = False) -> None:
        await self._delete(job_id, confirmed, self.DELETE_PROMPT)
        await self.load()

    def filtered(
        self,
        search: str = "",
        status: str = "all",
        category: str = "all",
    ) -> list[Job]:
        term = search.lower()
        results = []
        for job in self.items:
            haystack = [job.title or "", job.company_name or "", job.location or ""]
            if term and not any(term in field.lower() for field in haystack):
                continue
            if status != "all" and job.status.value != status:
                continue
            if category != "all" and job.category_name != category:
                continue
            results.append(job)
        return results

    def categories(self) -> list[str]:
        return list(dict.fromkeys(job.category_name for job in self.items if job.category_name))

    def stats(self) -> dict[str, int]:
        live = (JobStatus.ACTIVE, JobStatus.APPROVED)
        return {
            "total": len(self.items),
            "active": sum(1 for job in self.items if job.status in live),
            "pending": sum(1 for job in self.items if job.status == JobStatus.PENDING),
            "closed": sum(1 for job in self.items if job.status == JobStatus.CLOSED),
        }


class JobManagementBoard(JobBoard):
    """An employer's own postings."""

    DELETE_PROMPT = 'Are you sure you want to delete the job "{title}"? This action cannot be undone.'
    reason_field = None

    def __init__(self, api: JobBoardAPI, employer_id: int | str):
        super().__init__(api, JOB_MANAGEMENT_WORKFLOW)
        self.employer_id = employer_id

    async def _fetch(self) -> list[dict]:
        return await self.api.get_employer_jobs(self.employer_id)

    async def _send_transition(self, item: Job, status: JobStatus, reason: Optional[str]) -> dict:
        data = item.model_dump(mode="json", exclude_none=True)
        data["status"] = status.value
        return await self.api.update_job(item.id, data)

    async def change_status(self, job_id: Hashable, action: JobAction) -> Job:
        return await self.transition(job_id, action)

    async def edit(self, job_id: Hashable, changes: dict) -> Job:
        job = self.get(job_id)
        data = job.model_dump(mode="json", exclude_none=True)
        data.update(changes)
        await self._track(self.api.update_job(job.id, data))
        logger.info(f"Job {job_id} updated")
        return self._apply(job_id, changes)

    async def delete(self, job_id: Hashable, confirmed: bool = False) -> None:
        await self._delete(job_id, confirmed, self.DELETE_PROMPT)

    def filtered(self, search: str = "", status: str = "all") -> list[Job]:
        term = search.lower()
        results = []
        for job in self.items:
            haystack = [job.title or "", job.category_name or "", job.location or ""]
            if term and not any(term in field.lower() for field in haystack):
                continue
            if status != "all" and job.status.value != status:
                continue
            results.append(job)
        return results

    def grouped(self, jobs: Optional[list[Job]] = None) -> dict[str, list[Job]]:
        return group_by(self.items if jobs is None else jobs, lambda job: job.title, "Untitled Job")

    def stats(self) -> dict[str, int]:
        counts = status_counts(self.items, ("active", "closed", "draft"))
        counts["total"] = len(self.items)
        return counts


def job_card(board: JobBoard, job: Job) -> JobCard:
    return JobCard(
        id=job.id,
        title=job.title,
        company_name=job.company_name,
        location=job.location,
        category_name=job.category_name,
        job_type=job.job_type,
        description_preview=preview(job.description),
        status=job.status,
        badge=status_style("job", job.status),
        moderation_reason=job.moderation_reason,
        posted_on=format_date(job.created_at),
        application_count=job.application_count,
        actions=board.actions_for(job),
    )
