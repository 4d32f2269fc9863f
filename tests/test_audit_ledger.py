"""
Tests — Status history ledger.

Covers:
    - Entry fields, 1-based sequence, system actor fallback
    - Immutability: updates and deletes are rejected at flush
    - Newest-first listing and oldest-first replay
"""

import pytest

from app.models import db
from app.models.onboarding import (
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_NEW,
    STATUS_UNDER_REVIEW,
    SYSTEM_ACTOR,
    ImmutableRecordError,
)
from app.services.audit_ledger import list_history, reconstruct_statuses, record_status_change


class TestRecordStatusChange:
    def test_entry_fields(self, make_request):
        req = make_request()
        entry = record_status_change(req, STATUS_NEW, STATUS_UNDER_REVIEW,
                                     actor="agent-4", notes="triaged")
        db.session.commit()

        assert entry.id
        assert entry.request_id == req.id
        assert entry.sequence == 1
        assert entry.old_status == STATUS_NEW
        assert entry.new_status == STATUS_UNDER_REVIEW
        assert entry.changed_by == "agent-4"
        assert entry.notes == "triaged"
        assert entry.changed_at is not None

    @pytest.mark.parametrize("actor", [None, ""])
    def test_missing_actor_falls_back_to_system(self, make_request, actor):
        req = make_request()
        entry = record_status_change(req, STATUS_NEW, STATUS_UNDER_REVIEW, actor=actor)
        db.session.commit()
        assert entry.changed_by == SYSTEM_ACTOR

    def test_sequence_is_per_request(self, make_request):
        a = make_request(trading_name="Alpha Ltd")
        b = make_request(trading_name="Beta Ltd")
        record_status_change(a, STATUS_NEW, STATUS_UNDER_REVIEW)
        record_status_change(a, STATUS_UNDER_REVIEW, STATUS_IN_PROGRESS)
        entry_b = record_status_change(b, STATUS_NEW, STATUS_UNDER_REVIEW)
        db.session.commit()

        assert [e.sequence for e in list_history(a.id, newest_first=False)] == [1, 2]
        assert entry_b.sequence == 1

    def test_to_dict_uses_wire_keys(self, make_request):
        req = make_request()
        entry = record_status_change(req, STATUS_NEW, STATUS_UNDER_REVIEW)
        db.session.commit()
        data = entry.to_dict()
        assert data["requestId"] == req.id
        assert data["oldStatus"] == STATUS_NEW
        assert data["newStatus"] == STATUS_UNDER_REVIEW
        assert data["changedBy"] == SYSTEM_ACTOR
        assert data["changedAt"]


class TestImmutability:
    def test_update_is_rejected(self, make_request):
        req = make_request()
        entry = record_status_change(req, STATUS_NEW, STATUS_UNDER_REVIEW)
        db.session.commit()

        entry.notes = "rewritten"
        with pytest.raises(ImmutableRecordError):
            db.session.flush()
        db.session.rollback()

        db.session.expire_all()
        assert list_history(req.id)[0].notes is None

    def test_delete_is_rejected(self, make_request):
        req = make_request()
        entry = record_status_change(req, STATUS_NEW, STATUS_UNDER_REVIEW)
        db.session.commit()

        db.session.delete(entry)
        with pytest.raises(ImmutableRecordError):
            db.session.flush()
        db.session.rollback()

        assert len(list_history(req.id)) == 1


class TestListing:
    def test_newest_first(self, make_request):
        req = make_request()
        for old, new in [
            (STATUS_NEW, STATUS_UNDER_REVIEW),
            (STATUS_UNDER_REVIEW, STATUS_IN_PROGRESS),
            (STATUS_IN_PROGRESS, STATUS_COMPLETED),
        ]:
            record_status_change(req, old, new)
        db.session.commit()

        assert [e.new_status for e in list_history(req.id)] == [
            STATUS_COMPLETED, STATUS_IN_PROGRESS, STATUS_UNDER_REVIEW,
        ]

    def test_reconstruct_statuses(self, make_request):
        req = make_request()
        record_status_change(req, STATUS_NEW, STATUS_UNDER_REVIEW)
        record_status_change(req, STATUS_UNDER_REVIEW, STATUS_IN_PROGRESS)
        record_status_change(req, STATUS_IN_PROGRESS, STATUS_COMPLETED)
        db.session.commit()

        assert reconstruct_statuses(req.id) == [
            STATUS_NEW, STATUS_UNDER_REVIEW, STATUS_IN_PROGRESS, STATUS_COMPLETED,
        ]

    def test_empty_history(self, make_request):
        req = make_request()
        assert list_history(req.id) == []
        assert reconstruct_statuses(req.id) == []
