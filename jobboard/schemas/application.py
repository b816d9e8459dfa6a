"""Application-related Pydantic schemas."""
from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from jobboard.services.state_machine import ApplicationStatus
from jobboard.services.status_display import StatusStyle


class Application(BaseModel):
    """An application record as returned by the backend."""
    id: int | str
    job_id: Optional[int | str] = None
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    location: Optional[str] = None
    salary: Optional[str | int | float] = None

    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    cover_letter: str = ""
    experience: Optional[str] = None
    expected_salary: Optional[str | int | float] = None
    available_start_date: Optional[str] = None
    additional_info: Optional[str] = None
    cv_file_path: Optional[str] = None

    status: ApplicationStatus = ApplicationStatus.PENDING
    response_message: Optional[str] = None

    applied_at: Optional[str] = None
    reviewed_at: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class ApplicationForm(BaseModel):
    """Fields typed by the job seeker on the application form."""
    full_name: str = ""
    email: str = ""
    phone: str = ""
    cover_letter: str = ""
    experience: str = ""
    expected_salary: Optional[str] = None
    available_start_date: Optional[date] = None
    additional_info: Optional[str] = None


class CVFile(BaseModel):
    """An uploaded CV held in memory until submission."""
    filename: str
    content_type: str
    content: bytes = Field(repr=False)

    @property
    def size(self) -> int:
        return len(self.content)


class FormPrefill(BaseModel):
    """Initial form state derived from the session user."""
    full_name: str = ""
    email: str = ""
    phone: str = ""
    email_read_only: bool = False


class JobContext(BaseModel):
    """The job an application is submitted against."""
    id: int | str
    title: Optional[str] = None
    company: Optional[str] = None


class ApplicationSubmitted(BaseModel):
    """Outcome of a successful submission, handed to the caller."""
    application_id: int | str
    job_id: int | str
    job_title: Optional[str] = None
    company: Optional[str] = None
    form: ApplicationForm
    message: str = "Application submitted successfully! You will receive a confirmation email shortly."
    next_page: str = "/user/my-applications"


class StatusUpdate(BaseModel):
    """Body of a status transition posted by an employer."""
    message: Optional[str] = None


class ApplicationCard(BaseModel):
    """One application as rendered on a board or tracker."""
    id: int | str
    job_id: Optional[int | str] = None
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    location: Optional[str] = None
    salary: Optional[str | int | float] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    cover_letter_preview: Optional[str] = None
    status: ApplicationStatus
    badge: StatusStyle
    applied_on: Optional[str] = None
    response_message: Optional[str] = None
    job_link: Optional[str] = None
    actions: list[str] = []
    highlighted: bool = False


class ApplicationGroup(BaseModel):
    """Applications for one job title."""
    job_title: str
    applications: list[ApplicationCard]


class EmployerApplicationsPage(BaseModel):
    total: int
    groups: list[ApplicationGroup]
    highlighted_application_id: Optional[int | str] = None


class MyApplicationsPage(BaseModel):
    total: int
    applications: list[ApplicationCard]
