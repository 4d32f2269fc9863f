"""
Status history ledger.

Append-only log of status changes, keyed by onboarding request.

  - Writer uses ``flush`` only, so the caller's commit covers the status
    change and its ledger entry together.
  - Entries are never updated or deleted (ORM listeners on
    StatusHistoryEntry reject both).
  - Presentation order is ``changed_at`` descending; ``sequence`` gives the
    insertion order used to reconstruct a request's history.

Usage:
    from app.services.audit_ledger import record_status_change, list_history

    entry = record_status_change(req, "New", "Under Review", actor="agent-7")
    entries = list_history(req.id)
"""

from sqlalchemy import func

from app.models import db
from app.models.onboarding import SYSTEM_ACTOR, StatusHistoryEntry


def _next_sequence(request_id: str) -> int:
    current = (
        db.session.query(func.max(StatusHistoryEntry.sequence))
        .filter(StatusHistoryEntry.request_id == request_id)
        .scalar()
    )
    return (current or 0) + 1


def record_status_change(
    request,
    old_status: str | None,
    new_status: str,
    actor: str | None = None,
    notes: str | None = None,
) -> StatusHistoryEntry:
    """
    Append one ledger entry for *request*.  Flushes; never commits.

    ``actor`` falls back to the system sentinel when empty.
    """
    entry = StatusHistoryEntry(
        request=request,
        sequence=_next_sequence(request.id),
        old_status=old_status,
        new_status=new_status,
        changed_by=actor or SYSTEM_ACTOR,
        notes=notes,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def list_history(request_id: str, newest_first: bool = True) -> list[StatusHistoryEntry]:
    """Return the ledger for one request, newest first by default."""
    q = StatusHistoryEntry.query.filter_by(request_id=request_id)
    if newest_first:
        q = q.order_by(StatusHistoryEntry.changed_at.desc(), StatusHistoryEntry.sequence.desc())
    else:
        q = q.order_by(StatusHistoryEntry.sequence.asc())
    return q.all()


def reconstruct_statuses(request_id: str) -> list[str | None]:
    """
    Replay the ledger into a status timeline.

    Returns ``[first old_status, new_status_1, ..., new_status_n]``, or an
    empty list when the request has no entries.
    """
    entries = list_history(request_id, newest_first=False)
    if not entries:
        return []
    return [entries[0].old_status] + [e.new_status for e in entries]
