"""Badge colors and icons for every entity status, in one table."""
from enum import Enum
from typing import Dict, Tuple

from pydantic import BaseModel

from jobboard.services.state_machine import ApplicationStatus, JobStatus


class StatusStyle(BaseModel):
    label: str
    color: str
    icon: str


DEFAULT_COLOR = "#6c757d"
DEFAULT_ICON = "fas fa-question-circle"

STATUS_STYLES: Dict[Tuple[str, str], Tuple[str, str]] = {
    ("application", ApplicationStatus.PENDING.value): ("#ffc107", "fas fa-clock"),
    ("application", ApplicationStatus.REVIEWED.value): ("#17a2b8", "fas fa-eye"),
    ("application", ApplicationStatus.SHORTLISTED.value): ("#28a745", "fas fa-check-circle"),
    ("application", ApplicationStatus.REJECTED.value): ("#dc3545", "fas fa-times-circle"),
    ("application", ApplicationStatus.HIRED.value): ("#6f42c1", "fas fa-trophy"),
    ("job", JobStatus.ACTIVE.value): ("#28a745", "fas fa-check-circle"),
    ("job", JobStatus.APPROVED.value): ("#28a745", "fas fa-check-circle"),
    ("job", JobStatus.CLOSED.value): ("#6c757d", "fas fa-times-circle"),
    ("job", JobStatus.PENDING.value): ("#ffc107", "fas fa-clock"),
    ("job", JobStatus.REJECTED.value): ("#dc3545", "fas fa-ban"),
    ("job", JobStatus.FLAGGED.value): ("#fd7e14", "fas fa-flag"),
    ("job", JobStatus.DRAFT.value): ("#17a2b8", "fas fa-edit"),
}


def status_style(entity: str, status: Enum | str | None) -> StatusStyle:
    """Look up the badge for a status; unknown statuses get the neutral badge."""
    value = status.value if isinstance(status, Enum) else (status or "unknown")
    color, icon = STATUS_STYLES.get((entity, value), (DEFAULT_COLOR, DEFAULT_ICON))
    return StatusStyle(label=value.capitalize(), color=color, icon=icon)
