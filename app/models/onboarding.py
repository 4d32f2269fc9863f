"""
Onboarding Request Service
Onboarding domain models.

Models:
    - OnboardingRequest: one client intake case tracked through the lifecycle
    - StatusHistoryEntry: immutable, append-only record of a status change
    - TeamAssignment: one routing decision (automatic or manual override)

Architecture chain: OnboardingRequest → StatusHistoryEntry / TeamAssignment
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.orm import object_session

from app.models import db


def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ── Constants ────────────────────────────────────────────────────────────────

STATUS_NEW = "New"
STATUS_UNDER_REVIEW = "Under Review"
STATUS_IN_PROGRESS = "In Progress"
STATUS_COMPLETED = "Completed"
STATUS_ON_HOLD = "On Hold"

# status → completion percentage; the only hard rule of the lifecycle
STATUS_COMPLETION = {
    STATUS_NEW: 0,
    STATUS_UNDER_REVIEW: 25,
    STATUS_IN_PROGRESS: 50,
    STATUS_COMPLETED: 100,
    STATUS_ON_HOLD: 25,
}
ONBOARDING_STATUSES = frozenset(STATUS_COMPLETION)

INDUSTRIES = frozenset({"Manufacturing", "Retail", "Logistics", "Other"})
COMPANY_SIZES = frozenset({"Small", "Medium", "Large", "Enterprise"})
REQUEST_TYPES = frozenset({"New Installation", "Upgrade", "Migration"})
REGIONS = frozenset({"North", "South", "East", "West", "International"})

TEAM_SALES = "Sales"
TEAM_TECHNICAL = "Technical"
TEAM_ACCOUNTS = "Accounts"
UNASSIGNED_TEAM = "Unassigned"

ASSIGNMENT_PENDING = "Pending"

SYSTEM_ACTOR = "system"

# Fields a caller may edit through update_fields (workflow fields excluded)
EDITABLE_FIELDS = (
    "trading_name", "contact_name", "contact_email", "contact_phone",
    "company_address", "industry", "company_size", "request_type",
    "region", "notes",
)


class ImmutableRecordError(Exception):
    """Raised when code tries to modify or delete a ledger entry."""


# ═══════════════════════════════════════════════════════════════════════════
#  ONBOARDING REQUEST
# ═══════════════════════════════════════════════════════════════════════════

class OnboardingRequest(db.Model):
    """
    A client onboarding intake case.

    ``completion_percentage`` is derived from ``status`` by the lifecycle
    service and is never written by callers directly.
    """

    __tablename__ = "onboarding_requests"
    __table_args__ = (
        db.Index("idx_onb_status", "status"),
        db.Index("idx_onb_team", "assigned_team"),
        db.Index("idx_onb_created", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    reference_number = db.Column(
        db.String(30), unique=True, nullable=False,
        comment="ONB-YYYYMMDD-XXXXXX, assigned once at creation",
    )

    # Client
    trading_name = db.Column(db.String(200), nullable=False)
    contact_name = db.Column(db.String(150), nullable=False)
    contact_email = db.Column(db.String(254), nullable=False)
    contact_phone = db.Column(db.String(50), nullable=True)
    company_address = db.Column(db.Text, nullable=True)
    industry = db.Column(db.String(30), nullable=True)
    company_size = db.Column(db.String(20), nullable=True)
    request_type = db.Column(db.String(30), nullable=True)
    region = db.Column(db.String(20), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # Workflow
    status = db.Column(db.String(30), nullable=False, default=STATUS_NEW)
    completion_percentage = db.Column(db.Integer, nullable=False, default=0)
    assigned_team = db.Column(db.String(50), nullable=True)
    assigned_user_id = db.Column(db.String(64), nullable=True)

    # Audit columns
    created_by = db.Column(db.String(150), nullable=True)
    updated_by = db.Column(db.String(150), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    status_history = db.relationship(
        "StatusHistoryEntry",
        back_populates="request",
        order_by="StatusHistoryEntry.sequence",
        lazy="select",
    )
    team_assignments = db.relationship(
        "TeamAssignment",
        back_populates="request",
        order_by="TeamAssignment.assigned_at",
        lazy="select",
    )

    def to_dict(self, include_history=False):
        data = {
            "id": self.id,
            "referenceNumber": self.reference_number,
            "tradingName": self.trading_name,
            "contactName": self.contact_name,
            "contactEmail": self.contact_email,
            "contactPhone": self.contact_phone,
            "companyAddress": self.company_address,
            "industry": self.industry,
            "companySize": self.company_size,
            "requestType": self.request_type,
            "region": self.region,
            "notes": self.notes,
            "status": self.status,
            "completionPercentage": self.completion_percentage,
            "assignedTeam": self.assigned_team,
            "assignedUserId": self.assigned_user_id,
            "createdBy": self.created_by,
            "updatedBy": self.updated_by,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if include_history:
            data["statusHistory"] = [
                h.to_dict() for h in reversed(self.status_history)
            ]
            data["teamAssignments"] = [
                a.to_dict() for a in reversed(self.team_assignments)
            ]
        return data

    def __repr__(self):
        return f"<OnboardingRequest {self.reference_number} [{self.status}]>"


# ═══════════════════════════════════════════════════════════════════════════
#  STATUS HISTORY (audit ledger)
# ═══════════════════════════════════════════════════════════════════════════

class StatusHistoryEntry(db.Model):
    """
    Immutable audit row for one status change.

    ``sequence`` is the 1-based insertion index within the owning request;
    ordering by it reconstructs the full status history.
    """

    __tablename__ = "status_history"
    __table_args__ = (
        db.UniqueConstraint("request_id", "sequence", name="uq_status_history_seq"),
        db.Index("idx_status_history_changed", "request_id", "changed_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    request_id = db.Column(
        db.String(36),
        db.ForeignKey("onboarding_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence = db.Column(db.Integer, nullable=False)
    old_status = db.Column(db.String(30), nullable=True)
    new_status = db.Column(db.String(30), nullable=False)
    changed_by = db.Column(db.String(150), nullable=False, default=SYSTEM_ACTOR)
    changed_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    notes = db.Column(db.Text, nullable=True)

    request = db.relationship("OnboardingRequest", back_populates="status_history")

    def to_dict(self):
        return {
            "id": self.id,
            "requestId": self.request_id,
            "sequence": self.sequence,
            "oldStatus": self.old_status,
            "newStatus": self.new_status,
            "changedBy": self.changed_by,
            "changedAt": _iso(self.changed_at),
            "notes": self.notes,
        }

    def __repr__(self):
        return f"<StatusHistoryEntry {self.request_id}#{self.sequence}: {self.old_status} → {self.new_status}>"


@event.listens_for(StatusHistoryEntry, "before_update")
def _reject_history_update(mapper, connection, target):
    session = object_session(target)
    if session is not None and session.is_modified(target, include_collections=False):
        raise ImmutableRecordError(f"Status history entry {target.id} is immutable")


@event.listens_for(StatusHistoryEntry, "before_delete")
def _reject_history_delete(mapper, connection, target):
    raise ImmutableRecordError(f"Status history entry {target.id} cannot be deleted")


# ═══════════════════════════════════════════════════════════════════════════
#  TEAM ASSIGNMENT
# ═══════════════════════════════════════════════════════════════════════════

class TeamAssignment(db.Model):
    """A routing decision handing a request to a team."""

    __tablename__ = "team_assignments"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    request_id = db.Column(
        db.String(36),
        db.ForeignKey("onboarding_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    team_name = db.Column(db.String(50), nullable=False)
    assigned_user_id = db.Column(db.String(64), nullable=True)
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    status = db.Column(db.String(20), nullable=False, default=ASSIGNMENT_PENDING)

    request = db.relationship("OnboardingRequest", back_populates="team_assignments")

    def to_dict(self):
        return {
            "id": self.id,
            "requestId": self.request_id,
            "teamName": self.team_name,
            "assignedUserId": self.assigned_user_id,
            "assignedAt": _iso(self.assigned_at),
            "status": self.status,
        }

    def __repr__(self):
        return f"<TeamAssignment {self.request_id} → {self.team_name} [{self.status}]>"
