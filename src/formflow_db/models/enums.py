"""Database-level enumerations for form applications."""

import enum


class ApplicationStatus(str, enum.Enum):
    """Lifecycle states for an application row.

    Transitions:
        draft -> in_progress        (first answers saved)
        in_progress -> complete     (form reached its end)
        in_progress -> terminated   (a terminate step was reached)
        complete -> submitted       (final submit accepted)
        any but submitted -> draft  (restart)
    """

    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    TERMINATED = "terminated"
    SUBMITTED = "submitted"
