"""
Onboarding statistics.

Snapshot aggregation over the current request set, recomputed on every call:
    total     : number of requests
    byStatus  : status → count, for each observed status
    byTeam    : team → count for non-null teams, plus "Unassigned" for
                requests with no team (counted separately, then merged)
"""

from collections import Counter

from sqlalchemy import func

from app.models import db
from app.models.onboarding import UNASSIGNED_TEAM, OnboardingRequest


def _merge_unassigned(by_team: dict, unassigned: int) -> dict:
    if unassigned:
        by_team[UNASSIGNED_TEAM] = by_team.get(UNASSIGNED_TEAM, 0) + unassigned
    return by_team


def _stats_from_store() -> dict:
    total = db.session.query(func.count(OnboardingRequest.id)).scalar() or 0

    status_rows = (
        db.session.query(OnboardingRequest.status, func.count(OnboardingRequest.id))
        .group_by(OnboardingRequest.status)
        .all()
    )
    team_rows = (
        db.session.query(OnboardingRequest.assigned_team, func.count(OnboardingRequest.id))
        .filter(OnboardingRequest.assigned_team.isnot(None))
        .group_by(OnboardingRequest.assigned_team)
        .all()
    )
    unassigned = (
        db.session.query(func.count(OnboardingRequest.id))
        .filter(OnboardingRequest.assigned_team.is_(None))
        .scalar()
    ) or 0

    return {
        "total": total,
        "byStatus": {status: count for status, count in status_rows},
        "byTeam": _merge_unassigned({team: count for team, count in team_rows}, unassigned),
    }


def compute_stats(requests=None) -> dict:
    """
    Aggregate counts over all stored requests, or over *requests* if given.

    *requests* may be any iterable of objects exposing ``status`` and
    ``assigned_team``.
    """
    if requests is None:
        return _stats_from_store()

    requests = list(requests)
    by_status = Counter(r.status for r in requests)
    by_team = Counter(r.assigned_team for r in requests if r.assigned_team is not None)
    unassigned = sum(1 for r in requests if r.assigned_team is None)
    return {
        "total": len(requests),
        "byStatus": dict(by_status),
        "byTeam": _merge_unassigned(dict(by_team), unassigned),
    }
