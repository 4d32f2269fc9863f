"""
Onboarding Request Orchestrator

Composes the reference-number generator, lifecycle, routing policy, ledger,
stats and query services into the operations the HTTP layer calls:

    create_request     → store New/0%, then dispatch routing (fire-and-forget)
    get_request        → one request (NotFoundError if unknown)
    list_requests      → filtered page + total
    update_fields      → client fields only; never status/percentage
    transition_status  → lifecycle transition + ledger entry, one commit
    reassign_team      → manual team override + TeamAssignment
    get_history        → status ledger for one request
    get_stats          → total / byStatus / byTeam

Transaction policy: each operation is one unit of work and owns its commit.
Any failure rolls the whole unit back; database failures surface as StorageError.

Concurrent writes are last-write-wins: there is no version column, so a
manual transition racing the routing task may be overwritten by it.
"""

import logging
from datetime import datetime, timezone

from app.core.exceptions import ValidationError
from app.models import db
from app.models.onboarding import (
    ASSIGNMENT_PENDING,
    COMPANY_SIZES,
    EDITABLE_FIELDS,
    INDUSTRIES,
    ONBOARDING_STATUSES,
    REGIONS,
    REQUEST_TYPES,
    STATUS_NEW,
    OnboardingRequest,
    TeamAssignment,
)
from app.services import audit_ledger, query_service, stats_service
from app.services.code_generator import generate_reference_number
from app.services.onboarding_lifecycle import completion_for_status, transition
from app.services.routing_dispatcher import dispatch_routing
from app.utils.helpers import get_or_raise, unit_of_work

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("trading_name", "contact_name", "contact_email")

_ENUM_FIELDS = {
    "industry": INDUSTRIES,
    "company_size": COMPANY_SIZES,
    "request_type": REQUEST_TYPES,
    "region": REGIONS,
}


def _clean_fields(fields: dict, *, partial: bool) -> dict:
    """Keep editable keys, blank strings → None, and check enum values."""
    cleaned = {}
    for key in EDITABLE_FIELDS:
        if key not in fields:
            continue
        value = fields[key]
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[key] = value

    errors = {}
    for key, allowed in _ENUM_FIELDS.items():
        value = cleaned.get(key)
        if value is not None and value not in allowed:
            errors[key] = f"must be one of: {', '.join(sorted(allowed))}"
    for key in REQUIRED_FIELDS:
        if (not partial or key in cleaned) and not cleaned.get(key):
            errors[key] = "is required"
    if errors:
        raise ValidationError("Invalid onboarding request fields", details=errors)
    return cleaned


def _load(request_id: str) -> OnboardingRequest:
    req = get_or_raise(OnboardingRequest, request_id, label="OnboardingRequest")
    # routing commits from its own session; refresh before reading
    db.session.refresh(req)
    return req


# ── Create ───────────────────────────────────────────────────────────────


def create_request(fields: dict, actor: str | None = None) -> OnboardingRequest:
    """
    Store a new request in status New at 0% and schedule routing.

    The request is committed before routing is dispatched; a routing
    failure never affects the returned request.
    """
    data = _clean_fields(fields, partial=False)
    with unit_of_work("create_request"):
        req = OnboardingRequest(
            reference_number=generate_reference_number(),
            status=STATUS_NEW,
            completion_percentage=completion_for_status(STATUS_NEW),
            created_by=actor,
            updated_by=actor,
            **data,
        )
        db.session.add(req)
    # load New/0% into the caller's identity map before routing runs
    db.session.refresh(req)

    logger.info(
        "Created onboarding request %s (%s)", req.reference_number, req.trading_name,
        extra={
            "onboarding_request_id": req.id,
            "reference_number": req.reference_number,
            "event_type": "created",
        },
    )
    dispatch_routing(req.id)
    return req


# ── Read ─────────────────────────────────────────────────────────────────


def get_request(request_id: str) -> OnboardingRequest:
    return _load(request_id)


def list_requests(status=None, assigned_team=None, search=None, page=None, limit=None) -> dict:
    return query_service.list_requests(
        status=status, assigned_team=assigned_team, search=search, page=page, limit=limit,
    )


def get_history(request_id: str, newest_first: bool = True):
    get_or_raise(OnboardingRequest, request_id, label="OnboardingRequest")
    return audit_ledger.list_history(request_id, newest_first=newest_first)


def get_stats() -> dict:
    return stats_service.compute_stats()


# ── Update ───────────────────────────────────────────────────────────────


def update_fields(request_id: str, fields: dict, actor: str | None = None) -> OnboardingRequest:
    """Apply a partial edit of client fields. Workflow fields are ignored."""
    req = _load(request_id)
    data = _clean_fields(fields, partial=True)
    with unit_of_work("update_fields"):
        for key, value in data.items():
            setattr(req, key, value)
        req.updated_at = datetime.now(timezone.utc)
        if actor:
            req.updated_by = actor
    logger.info("Updated fields %s on %s", sorted(data), req.reference_number,
                extra={"onboarding_request_id": req.id, "event_type": "updated"})
    return req


def transition_status(
    request_id: str,
    new_status: str,
    actor: str | None = None,
    notes: str | None = None,
) -> OnboardingRequest:
    """Set a new status; percentage and ledger entry are committed with it."""
    if new_status not in ONBOARDING_STATUSES:
        raise ValidationError(
            "Invalid status",
            details={"status": f"must be one of: {', '.join(sorted(ONBOARDING_STATUSES))}"},
        )
    req = _load(request_id)
    with unit_of_work("transition_status"):
        transition(req, new_status, actor=actor, notes=notes)
    return req


def reassign_team(request_id: str, team_name: str, actor: str | None = None) -> OnboardingRequest:
    """Manual team override. Status is left untouched."""
    team_name = (team_name or "").strip()
    if not team_name:
        raise ValidationError("Team is required", details={"assignedTeam": "is required"})
    req = _load(request_id)
    previous = req.assigned_team
    with unit_of_work("reassign_team"):
        req.assigned_team = team_name
        req.updated_at = datetime.now(timezone.utc)
        if actor:
            req.updated_by = actor
        db.session.add(TeamAssignment(request=req, team_name=team_name, status=ASSIGNMENT_PENDING))
    logger.info("Reassigned %s: %s → %s", req.reference_number, previous, team_name,
                extra={"onboarding_request_id": req.id, "event_type": "reassigned"})
    return req
