"""
Tests — Onboarding statistics.

Covers:
    - In-memory aggregation over an explicit request list
    - "Unassigned" bucket appears only when some request has no team
    - Store-backed aggregation matches the in-memory path
"""

from types import SimpleNamespace

from app.models.onboarding import (
    STATUS_COMPLETED,
    STATUS_NEW,
    STATUS_UNDER_REVIEW,
    TEAM_ACCOUNTS,
    TEAM_SALES,
    UNASSIGNED_TEAM,
    OnboardingRequest,
)
from app.services.stats_service import compute_stats


def _r(status, team=None):
    return SimpleNamespace(status=status, assigned_team=team)


class TestComputeStatsInMemory:
    def test_mixed_set(self):
        stats = compute_stats([
            _r(STATUS_NEW),
            _r(STATUS_NEW),
            _r(STATUS_UNDER_REVIEW, TEAM_SALES),
            _r(STATUS_COMPLETED, TEAM_ACCOUNTS),
        ])
        assert stats == {
            "total": 4,
            "byStatus": {STATUS_NEW: 2, STATUS_UNDER_REVIEW: 1, STATUS_COMPLETED: 1},
            "byTeam": {TEAM_SALES: 1, TEAM_ACCOUNTS: 1, UNASSIGNED_TEAM: 2},
        }

    def test_empty(self):
        assert compute_stats([]) == {"total": 0, "byStatus": {}, "byTeam": {}}

    def test_no_unassigned_key_when_all_routed(self):
        stats = compute_stats([_r(STATUS_UNDER_REVIEW, TEAM_SALES)])
        assert UNASSIGNED_TEAM not in stats["byTeam"]

    def test_counts_sum_to_total(self):
        rows = [_r(STATUS_NEW), _r(STATUS_COMPLETED, TEAM_SALES), _r(STATUS_COMPLETED, TEAM_SALES)]
        stats = compute_stats(rows)
        assert sum(stats["byStatus"].values()) == stats["total"]
        assert sum(stats["byTeam"].values()) == stats["total"]

    def test_accepts_generator(self):
        assert compute_stats(_r(STATUS_NEW) for _ in range(3))["total"] == 3


class TestComputeStatsFromStore:
    def test_matches_in_memory(self, make_request):
        make_request()
        make_request()
        make_request(status=STATUS_UNDER_REVIEW, assigned_team=TEAM_SALES)
        make_request(status=STATUS_COMPLETED, assigned_team=TEAM_ACCOUNTS)

        stored = compute_stats()
        assert stored == compute_stats(OnboardingRequest.query.all())
        assert stored["total"] == 4
        assert stored["byTeam"][UNASSIGNED_TEAM] == 2

    def test_empty_store(self):
        assert compute_stats() == {"total": 0, "byStatus": {}, "byTeam": {}}
