"""
Tests — Onboarding orchestrator (service layer).

Covers:
    - create_request: New/0% returned, then routed to team + Under Review
    - Routing failure leaves the request created, New and unrouted
    - Field validation and cleaning
    - update_fields never touches workflow fields
    - transition_status / reassign_team / get_history / get_stats
    - NotFoundError for unknown ids
"""

import re

import pytest

import app.services.routing_policy as routing_policy_mod
from app.core.exceptions import NotFoundError, ValidationError
from app.models.onboarding import (
    ASSIGNMENT_PENDING,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_NEW,
    STATUS_UNDER_REVIEW,
    SYSTEM_ACTOR,
    TEAM_ACCOUNTS,
    TEAM_SALES,
    TEAM_TECHNICAL,
    UNASSIGNED_TEAM,
    StatusHistoryEntry,
    TeamAssignment,
)
from app.services import onboarding_service as svc

REF_RE = re.compile(r"^ONB-\d{8}-[A-Z0-9]{6}$")


def _fields(**overrides):
    fields = {
        "trading_name": "Contoso Ltd",
        "contact_name": "Priya Raman",
        "contact_email": "priya@contoso.com",
    }
    fields.update(overrides)
    return fields


class TestCreateRequest:
    def test_returns_new_request_at_zero(self):
        req = svc.create_request(_fields(region="International"))
        assert REF_RE.match(req.reference_number)
        assert req.status == STATUS_NEW
        assert req.completion_percentage == 0
        assert req.assigned_team is None

    def test_international_is_routed_to_sales(self):
        req = svc.create_request(_fields(region="International", company_size="Enterprise"))

        stored = svc.get_request(req.id)
        assert stored.assigned_team == TEAM_SALES
        assert stored.status == STATUS_UNDER_REVIEW
        assert stored.completion_percentage == 25

        history = svc.get_history(req.id)
        assert len(history) == 1
        assert (history[0].old_status, history[0].new_status) == (STATUS_NEW, STATUS_UNDER_REVIEW)
        assert history[0].changed_by == SYSTEM_ACTOR

        assignments = TeamAssignment.query.filter_by(request_id=req.id).all()
        assert [(a.team_name, a.status) for a in assignments] == [(TEAM_SALES, ASSIGNMENT_PENDING)]

    @pytest.mark.parametrize("extra,team", [
        ({"request_type": "Upgrade", "region": "North", "company_size": "Small"}, TEAM_TECHNICAL),
        ({"company_size": "Enterprise"}, TEAM_ACCOUNTS),
        ({}, TEAM_SALES),
    ])
    def test_routing_table_applied(self, extra, team):
        req = svc.create_request(_fields(**extra))
        assert svc.get_request(req.id).assigned_team == team

    def test_actor_is_recorded(self):
        req = svc.create_request(_fields(), actor="intake-desk")
        assert req.created_by == "intake-desk"

    def test_reference_numbers_are_unique(self):
        refs = {svc.create_request(_fields()).reference_number for _ in range(10)}
        assert len(refs) == 10

    def test_routing_failure_leaves_request_unrouted(self, monkeypatch, caplog):
        def _broken(request):
            raise RuntimeError("routing table unavailable")

        monkeypatch.setattr(routing_policy_mod, "explain_route", _broken)

        with caplog.at_level("ERROR", logger="app.services.routing_dispatcher"):
            req = svc.create_request(_fields(region="International"))

        stored = svc.get_request(req.id)
        assert stored.status == STATUS_NEW
        assert stored.completion_percentage == 0
        assert stored.assigned_team is None
        assert svc.get_history(req.id) == []
        assert TeamAssignment.query.filter_by(request_id=req.id).count() == 0
        assert "routing table unavailable" in caplog.text

    def test_strings_are_trimmed_and_blanks_dropped(self):
        req = svc.create_request(_fields(trading_name="  Contoso Ltd  ", notes="   "))
        assert req.trading_name == "Contoso Ltd"
        assert req.notes is None

    @pytest.mark.parametrize("missing", ["trading_name", "contact_name", "contact_email"])
    def test_required_fields(self, missing):
        fields = _fields()
        fields[missing] = "  "
        with pytest.raises(ValidationError) as exc:
            svc.create_request(fields)
        assert missing in exc.value.details

    def test_enum_fields_are_checked(self):
        with pytest.raises(ValidationError) as exc:
            svc.create_request(_fields(region="Atlantis", company_size="Huge"))
        assert set(exc.value.details) == {"region", "company_size"}

    def test_workflow_fields_in_input_are_ignored(self):
        req = svc.create_request(_fields(status=STATUS_COMPLETED, completion_percentage=100))
        assert req.status == STATUS_NEW
        assert req.completion_percentage == 0


class TestUpdateFields:
    def test_partial_update(self, make_request):
        req = make_request(status=STATUS_IN_PROGRESS)
        updated = svc.update_fields(req.id, {"contact_phone": "+44 20 7946 0018"}, actor="agent-5")
        assert updated.contact_phone == "+44 20 7946 0018"
        assert updated.trading_name == "Northwind Traders"
        assert updated.updated_by == "agent-5"

    def test_status_and_percentage_are_not_editable(self, make_request):
        req = make_request(status=STATUS_IN_PROGRESS)
        svc.update_fields(req.id, {"status": STATUS_COMPLETED, "completion_percentage": 100,
                                   "assigned_team": TEAM_ACCOUNTS})
        stored = svc.get_request(req.id)
        assert stored.status == STATUS_IN_PROGRESS
        assert stored.completion_percentage == 50
        assert stored.assigned_team is None
        assert svc.get_history(req.id) == []

    def test_required_field_cannot_be_blanked(self, make_request):
        req = make_request()
        with pytest.raises(ValidationError):
            svc.update_fields(req.id, {"trading_name": ""})

    def test_unknown_id(self):
        with pytest.raises(NotFoundError):
            svc.update_fields("missing", {"notes": "x"})


class TestTransitionStatus:
    def test_transition(self, make_request):
        req = make_request(status=STATUS_UNDER_REVIEW)
        updated = svc.transition_status(req.id, STATUS_COMPLETED, actor="agent-1", notes="signed off")
        assert updated.status == STATUS_COMPLETED
        assert updated.completion_percentage == 100
        entry = svc.get_history(req.id)[0]
        assert entry.notes == "signed off"
        assert entry.changed_by == "agent-1"

    @pytest.mark.parametrize("bad", ["Archived", "completed", ""])
    def test_invalid_status(self, make_request, bad):
        req = make_request()
        with pytest.raises(ValidationError):
            svc.transition_status(req.id, bad)
        assert StatusHistoryEntry.query.count() == 0

    def test_unknown_id(self):
        with pytest.raises(NotFoundError):
            svc.transition_status("missing", STATUS_COMPLETED)


class TestReassignTeam:
    def test_override_keeps_status(self, make_request):
        req = make_request(status=STATUS_UNDER_REVIEW, assigned_team=TEAM_SALES)
        updated = svc.reassign_team(req.id, TEAM_TECHNICAL, actor="lead-2")

        assert updated.assigned_team == TEAM_TECHNICAL
        assert updated.status == STATUS_UNDER_REVIEW
        assert updated.updated_by == "lead-2"
        assignments = TeamAssignment.query.filter_by(request_id=req.id).all()
        assert [(a.team_name, a.status) for a in assignments] == [(TEAM_TECHNICAL, ASSIGNMENT_PENDING)]
        assert svc.get_history(req.id) == []

    def test_blank_team_rejected(self, make_request):
        req = make_request()
        with pytest.raises(ValidationError):
            svc.reassign_team(req.id, "   ")


class TestReads:
    def test_get_request_unknown(self):
        with pytest.raises(NotFoundError):
            svc.get_request("missing")

    def test_get_history_unknown(self):
        with pytest.raises(NotFoundError):
            svc.get_history("missing")

    def test_stats_after_routing(self):
        svc.create_request(_fields(region="International"))
        svc.create_request(_fields(request_type="Upgrade"))
        stats = svc.get_stats()
        assert stats["total"] == 2
        assert stats["byStatus"] == {STATUS_UNDER_REVIEW: 2}
        assert stats["byTeam"] == {TEAM_SALES: 1, TEAM_TECHNICAL: 1}
        assert UNASSIGNED_TEAM not in stats["byTeam"]

    def test_list_sees_routed_state(self):
        req = svc.create_request(_fields(company_size="Enterprise"))
        result = svc.list_requests(assigned_team=TEAM_ACCOUNTS)
        assert [r.id for r in result["items"]] == [req.id]
        assert result["items"][0].status == STATUS_UNDER_REVIEW
