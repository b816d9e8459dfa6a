"""
State machines for applications and jobs.
ALL status transitions offered by the portal must go through this module.

Applications and jobs share nothing but the mechanics: each entity has its
own status enum and each workflow its own transition table. The backend is
the final authority; these tables only decide which actions the portal offers
and which requests it is willing to send.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Generic, Iterable, Optional, Tuple, TypeVar

# Configure logger
logger = logging.getLogger(__name__)


class ApplicationStatus(str, Enum):
    """Valid statuses for job applications"""
    PENDING = "pending"
    REVIEWED = "reviewed"  # recognised, but no portal action leads here
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"
    HIRED = "hired"


class ApplicationAction(str, Enum):
    SHORTLIST = "shortlist"
    REJECT = "reject"
    HIRE = "hire"


class JobStatus(str, Enum):
    """Job statuses; moderation and employer management share this field"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FLAGGED = "flagged"
    ACTIVE = "active"
    CLOSED = "closed"
    DRAFT = "draft"
    UNKNOWN = "unknown"


class JobAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    FLAG = "flag"
    ACTIVATE = "activate"
    CLOSE = "close"
    DRAFT = "draft"


class ReasonPolicy(str, Enum):
    """Whether an action carries a free-text reason"""
    NONE = "none"
    OPTIONAL = "optional"
    REQUIRED = "required"


class InvalidTransitionError(Exception):
    """Raised when an action is not offered for the current status"""
    pass


class MissingReasonError(InvalidTransitionError):
    """Raised when an action requires a reason and none was given"""
    pass


S = TypeVar("S", bound=Enum)
A = TypeVar("A", bound=Enum)


@dataclass(frozen=True)
class Transition(Generic[S, A]):
    source: S
    action: A
    target: S
    label: str
    reason: ReasonPolicy = ReasonPolicy.NONE
    default_reason: Optional[str] = None


class TransitionTable(Generic[S, A]):
    """
    Allowed (status, action) -> status mappings for one workflow.

    Args:
        entity: Name used in error messages and logs ("application", "job")
        transitions: The rules of the workflow
    """

    def __init__(self, entity: str, transitions: Iterable[Transition[S, A]]):
        self.entity = entity
        self._rules: Dict[Tuple[S, A], Transition[S, A]] = {}
        for rule in transitions:
            self._rules[(rule.source, rule.action)] = rule

    def rule_for(self, current: S, action: A) -> Transition[S, A]:
        rule = self._rules.get((current, action))
        if rule is None:
            raise InvalidTransitionError(
                f"Cannot {action.value} {self.entity} in status {current.value}"
            )
        return rule

    def next_state(self, current: S, action: A, reason: Optional[str] = None) -> S:
        """
        Validate an action against the current status.

        Returns:
            The status the entity moves to

        Raises:
            InvalidTransitionError: If the action is not offered from this status
            MissingReasonError: If the action requires a reason and none was given
        """
        rule = self.rule_for(current, action)
        if rule.reason == ReasonPolicy.REQUIRED and not (reason or "").strip():
            raise MissingReasonError(
                f"A reason is required to {action.value} a {current.value} {self.entity}"
            )
        logger.debug(f"{self.entity} transition allowed: {current.value} → {rule.target.value}")
        return rule.target

    def can_transition(self, current: S, action: A) -> bool:
        """Check if an action is offered without sending anything"""
        return (current, action) in self._rules

    def available(self, current: S) -> list[Transition[S, A]]:
        """Actions offered from a status, in table order"""
        return [rule for (source, _), rule in self._rules.items() if source == current]


# Employer review of applications
APPLICATION_WORKFLOW: TransitionTable[ApplicationStatus, ApplicationAction] = TransitionTable(
    "application",
    [
        Transition(ApplicationStatus.PENDING, ApplicationAction.SHORTLIST, ApplicationStatus.SHORTLISTED, "Shortlist"),
        Transition(ApplicationStatus.PENDING, ApplicationAction.REJECT, ApplicationStatus.REJECTED, "Reject"),
        Transition(ApplicationStatus.SHORTLISTED, ApplicationAction.HIRE, ApplicationStatus.HIRED, "Hire"),
        # REJECTED and HIRED have no outgoing actions
    ],
)

# Admin moderation queue
JOB_MODERATION_WORKFLOW: TransitionTable[JobStatus, JobAction] = TransitionTable(
    "job",
    [
        Transition(JobStatus.PENDING, JobAction.APPROVE, JobStatus.APPROVED, "Approve"),
        Transition(JobStatus.PENDING, JobAction.REJECT, JobStatus.REJECTED, "Reject", ReasonPolicy.OPTIONAL),
        Transition(JobStatus.PENDING, JobAction.FLAG, JobStatus.FLAGGED, "Flag", ReasonPolicy.REQUIRED),
        Transition(JobStatus.REJECTED, JobAction.APPROVE, JobStatus.APPROVED, "Approve"),
        Transition(JobStatus.APPROVED, JobAction.REJECT, JobStatus.REJECTED, "Reject", ReasonPolicy.REQUIRED),
    ],
)

# Admin "all jobs" page: approve anything not already live, reject anything not already rejected
ADMIN_JOB_WORKFLOW: TransitionTable[JobStatus, JobAction] = TransitionTable(
    "job",
    [
        Transition(status, JobAction.APPROVE, JobStatus.APPROVED, "Approve")
        for status in JobStatus
        if status not in (JobStatus.APPROVED, JobStatus.ACTIVE)
    ] + [
        Transition(status, JobAction.REJECT, JobStatus.REJECTED, "Reject", default_reason="Rejected by admin")
        for status in JobStatus
        if status != JobStatus.REJECTED
    ],
)

_MANAGEMENT_TARGETS = {
    JobAction.ACTIVATE: (JobStatus.ACTIVE, "Activate"),
    JobAction.CLOSE: (JobStatus.CLOSED, "Close"),
    JobAction.DRAFT: (JobStatus.DRAFT, "Move to draft"),
}

# Employer's own listings: active <-> closed <-> draft; a pending job can be withdrawn
JOB_MANAGEMENT_WORKFLOW: TransitionTable[JobStatus, JobAction] = TransitionTable(
    "job",
    [
        Transition(source, action, target, label)
        for source in (JobStatus.ACTIVE, JobStatus.CLOSED, JobStatus.DRAFT)
        for action, (target, label) in _MANAGEMENT_TARGETS.items()
        if source != target
    ] + [
        Transition(JobStatus.PENDING, JobAction.CLOSE, JobStatus.CLOSED, "Close"),
        Transition(JobStatus.PENDING, JobAction.DRAFT, JobStatus.DRAFT, "Move to draft"),
    ],
)
