"""
Onboarding request search, filter and pagination.

Filters:
    status         exact match
    assigned_team  exact match
    search         case-insensitive substring on trading name, contact name,
                   contact email or reference number (any one is a hit)

Pages are 1-based and ordered by ``created_at`` descending (id breaks ties
so page boundaries are stable).
"""

import math

from flask import current_app
from sqlalchemy import or_

from app.models.onboarding import OnboardingRequest

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

_SEARCH_COLUMNS = (
    OnboardingRequest.trading_name,
    OnboardingRequest.contact_name,
    OnboardingRequest.contact_email,
    OnboardingRequest.reference_number,
)


def coerce_positive_int(value, default: int) -> int:
    """Return *value* as a positive int, or *default* for anything else."""
    if isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_filtered_query(status=None, assigned_team=None, search=None):
    """Return an unordered query with the exact-match and search filters applied."""
    q = OnboardingRequest.query
    if status:
        q = q.filter(OnboardingRequest.status == status)
    if assigned_team:
        q = q.filter(OnboardingRequest.assigned_team == assigned_team)
    term = (search or "").strip()
    if term:
        pattern = f"%{_escape_like(term)}%"
        q = q.filter(or_(*(col.ilike(pattern, escape="\\") for col in _SEARCH_COLUMNS)))
    return q


def _limits():
    try:
        cfg = current_app.config
    except RuntimeError:
        return DEFAULT_LIMIT, MAX_LIMIT
    return (
        cfg.get("ONBOARDING_DEFAULT_PAGE_LIMIT", DEFAULT_LIMIT),
        cfg.get("ONBOARDING_MAX_PAGE_LIMIT", MAX_LIMIT),
    )


def list_requests(status=None, assigned_team=None, search=None, page=None, limit=None) -> dict:
    """
    Return one page of matching requests.

    Returns:
        {"items": [OnboardingRequest], "total", "page", "limit", "totalPages"}
        where ``total`` counts every match, not just this page.
    """
    default_limit, max_limit = _limits()
    page = coerce_positive_int(page, DEFAULT_PAGE)
    limit = min(coerce_positive_int(limit, default_limit), max_limit)

    q = build_filtered_query(status=status, assigned_team=assigned_team, search=search)
    total = q.count()
    items = (
        q.order_by(OnboardingRequest.created_at.desc(), OnboardingRequest.id.desc())
        # routing commits from its own session; never serve stale identity-map rows
        .populate_existing()
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit),
    }
