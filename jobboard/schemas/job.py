"""Job-related Pydantic schemas."""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, field_validator

from jobboard.services.state_machine import JobStatus
from jobboard.services.status_display import StatusStyle


class Job(BaseModel):
    """A job posting as returned by the backend."""
    id: int | str
    title: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[str] = None
    location: Optional[str] = None
    category_name: Optional[str] = None
    job_type: Optional[str] = None
    experience_level: Optional[str] = None
    salary: Optional[str | int | float] = None
    company_name: Optional[str] = None
    employer_id: Optional[int | str] = None
    status: JobStatus = JobStatus.UNKNOWN
    moderation_reason: Optional[str] = None
    application_count: Optional[int] = None
    created_at: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        # Statuses outside the known set are shown as "unknown"
        if value not in {status.value for status in JobStatus}:
            return JobStatus.UNKNOWN
        return value


class JobUpdate(BaseModel):
    """Editable fields of a job, sent by its employer."""
    title: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[str] = None
    location: Optional[str] = None
    category_name: Optional[str] = None
    job_type: Optional[str] = None
    experience_level: Optional[str] = None
    salary: Optional[str] = None


class ModerationAction(BaseModel):
    """Optional reason attached to a moderation action."""
    reason: Optional[str] = None


class PaymentStatus(BaseModel):
    """Result of the admin payment pre-check."""
    success: bool
    message: Optional[str] = None
    payment: Optional[dict] = None

    model_config = ConfigDict(extra="ignore")


class JobCard(BaseModel):
    """One job as rendered on a moderation or management board."""
    id: int | str
    title: Optional[str] = None
    company_name: Optional[str] = None
    location: Optional[str] = None
    category_name: Optional[str] = None
    job_type: Optional[str] = None
    description_preview: Optional[str] = None
    status: JobStatus
    badge: StatusStyle
    moderation_reason: Optional[str] = None
    posted_on: Optional[str] = None
    application_count: Optional[int] = None
    actions: list[str] = []


class ModerationPage(BaseModel):
    filter: str
    counts: dict[str, int]
    jobs: list[JobCard]


class AdminJobsPage(BaseModel):
    total: int
    stats: dict[str, int]
    categories: list[str]
    jobs: list[JobCard]


class JobGroup(BaseModel):
    title: str
    jobs: list[JobCard]


class ManageJobsPage(BaseModel):
    total: int
    stats: dict[str, int]
    groups: list[JobGroup]
