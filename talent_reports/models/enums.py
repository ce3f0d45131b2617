"""Enumeration types for the talent report pipeline."""
from enum import Enum


class RaterType(str, Enum):
    """Who submitted a response about a 360 target."""
    PEER = "peer"
    DIRECT_REPORT = "direct_report"
    SUPERVISOR = "supervisor"
    SELF = "self"
    OTHER = "other"


class FeedbackType(str, Enum):
    """Kinds of assigned feedback."""
    OVERALL = "overall"  # library entry with no dimension
    SPECIFIC = "specific"  # library entry tied to a dimension
    TEXT_360 = "360_text"  # harvested rater comment


class RenderStatus(str, Enum):
    """Lifecycle of the PDF artifact for one assignment."""
    NOT_REQUESTED = "not_requested"
    QUEUED = "queued"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


# group_members.role values, lowercased
RATER_ROLE_ALIASES: dict[str, RaterType] = {
    "peer": RaterType.PEER,
    "colleague": RaterType.PEER,
    "direct_report": RaterType.DIRECT_REPORT,
    "subordinate": RaterType.DIRECT_REPORT,
    "directreport": RaterType.DIRECT_REPORT,
    "supervisor": RaterType.SUPERVISOR,
    "manager": RaterType.SUPERVISOR,
    "boss": RaterType.SUPERVISOR,
    "self": RaterType.SELF,
}


# Statuses that turn an enqueue request into a no-op
RENDER_SKIP_STATUSES: frozenset[RenderStatus] = frozenset({
    RenderStatus.QUEUED,
    RenderStatus.GENERATING,
    RenderStatus.READY,
})


# Valid status transitions. generating -> queued is the operator re-enqueue of a stuck job.
VALID_RENDER_TRANSITIONS: dict[RenderStatus, list[RenderStatus]] = {
    RenderStatus.NOT_REQUESTED: [RenderStatus.QUEUED],
    RenderStatus.QUEUED: [RenderStatus.GENERATING],
    RenderStatus.GENERATING: [RenderStatus.READY, RenderStatus.FAILED, RenderStatus.QUEUED],
    RenderStatus.READY: [RenderStatus.QUEUED],
    RenderStatus.FAILED: [RenderStatus.QUEUED],
}


def map_role_to_rater_type(role: str | None) -> RaterType:
    """Classify a group member role; unknown or missing roles are OTHER."""
    if not role:
        return RaterType.OTHER
    return RATER_ROLE_ALIASES.get(role.strip().lower(), RaterType.OTHER)
