"""
Team Routing Policy

Fixed decision table evaluated once, right after a request is created.
First matching rule wins:

    1. region == International        → Sales
    2. request_type == Upgrade        → Technical
    3. company_size == Enterprise     → Accounts
    4. otherwise                      → Sales

``route`` is pure. ``apply_routing`` is the follow-up task the orchestrator
dispatches: it assigns the team, moves the request to Under Review and
records a Pending TeamAssignment, committing all three together.
"""

import logging

from app.models import db
from app.models.onboarding import (
    ASSIGNMENT_PENDING,
    STATUS_UNDER_REVIEW,
    SYSTEM_ACTOR,
    TEAM_ACCOUNTS,
    TEAM_SALES,
    TEAM_TECHNICAL,
    OnboardingRequest,
    TeamAssignment,
)
from app.services.onboarding_lifecycle import transition
from app.utils.helpers import unit_of_work

logger = logging.getLogger(__name__)

DEFAULT_TEAM = TEAM_SALES

# (rule_name, predicate, team); order is priority
ROUTING_RULES = (
    ("international_region", lambda r: r.region == "International", TEAM_SALES),
    ("upgrade_request", lambda r: r.request_type == "Upgrade", TEAM_TECHNICAL),
    ("enterprise_size", lambda r: r.company_size == "Enterprise", TEAM_ACCOUNTS),
)


def explain_route(request) -> dict:
    """Return ``{"team", "rule"}`` for *request*; rule is ``default`` if none fired."""
    for name, predicate, team in ROUTING_RULES:
        if predicate(request):
            return {"team": team, "rule": name}
    return {"team": DEFAULT_TEAM, "rule": "default"}


def route(request) -> str:
    """Team name for *request*. Accepts any object with region/request_type/company_size."""
    return explain_route(request)["team"]


def apply_routing(request_id: str, actor: str = SYSTEM_ACTOR):
    """
    Route one stored request and commit the result.

    Returns the routed OnboardingRequest, or None when the request no
    longer exists. Storage failures propagate as StorageError; the
    dispatcher is the boundary that logs and drops them.
    """
    req = db.session.get(OnboardingRequest, request_id)
    if req is None:
        logger.warning("Routing skipped: onboarding request %s not found", request_id)
        return None

    with unit_of_work("apply_routing"):
        decision = explain_route(req)
        req.assigned_team = decision["team"]
        transition(req, STATUS_UNDER_REVIEW, actor=actor, notes=f"Auto-routed to {decision['team']}")
        db.session.add(TeamAssignment(
            request=req,
            team_name=decision["team"],
            status=ASSIGNMENT_PENDING,
        ))

    logger.info(
        "Routed %s to %s (rule=%s)",
        req.reference_number, decision["team"], decision["rule"],
        extra={
            "onboarding_request_id": req.id,
            "reference_number": req.reference_number,
            "event_type": "routed",
        },
    )
    return req
