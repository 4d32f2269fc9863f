"""
Onboarding Request Lifecycle Service

Owns the status → completion percentage mapping and the status transition.

There is no transition graph: any status may move to any other status,
including out of Completed. The single hard rule is that
``completion_percentage`` always equals ``completion_for_status(status)``.

Statuses:
    New (0) · Under Review (25) · In Progress (50) · Completed (100) · On Hold (25)

Usage:
    from app.services.onboarding_lifecycle import transition

    entry = transition(req, "In Progress", actor="agent-7", notes="kick-off done")
    db.session.commit()   # status, percentage and history entry land together
"""

import logging
from datetime import datetime, timezone

from app.models import db
from app.models.onboarding import ONBOARDING_STATUSES, STATUS_COMPLETION, SYSTEM_ACTOR
from app.services.audit_ledger import record_status_change

logger = logging.getLogger(__name__)


def completion_for_status(status: str | None) -> int:
    """Completion percentage for *status*; unknown values map to 0."""
    return STATUS_COMPLETION.get(status, 0)


def is_valid_status(status) -> bool:
    return status in ONBOARDING_STATUSES


def transition(request, new_status: str, actor: str | None = None, notes: str | None = None):
    """
    Move *request* to *new_status* and append a history entry.

    Every call records an entry, even when the status is unchanged.
    Flushes only; the caller commits (or rolls back) the whole unit.

    Returns:
        The StatusHistoryEntry written for this transition.
    """
    actor = actor or SYSTEM_ACTOR
    old_status = request.status

    request.status = new_status
    request.completion_percentage = completion_for_status(new_status)
    request.updated_at = datetime.now(timezone.utc)
    request.updated_by = actor
    db.session.flush()

    entry = record_status_change(request, old_status, new_status, actor=actor, notes=notes)
    logger.info(
        "Onboarding %s: %s → %s (%d%%) by %s",
        request.reference_number, old_status, new_status,
        request.completion_percentage, actor,
        extra={
            "onboarding_request_id": request.id,
            "reference_number": request.reference_number,
            "event_type": "status_changed",
        },
    )
    return entry
