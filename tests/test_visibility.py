"""
Unit tests for role based record scoping.
"""
from attestation_bot.services.visibility import (
    can_escalate,
    can_resend_invites,
    can_send_reminders,
    can_view_dashboard,
    scope
)
from tests.factories import make_invite, make_record

RECORDS = [
    make_record("1", manager_email="boss@example.com"),
    make_record("2", manager_email="BOSS@example.COM "),
    make_record("3", manager_email="other@example.com"),
    make_record("4", manager_email=None),
    make_invite("9"),
]


class TestScope:

    def test_admin_sees_everything(self, admin):
        assert scope(RECORDS, admin) == RECORDS

    def test_coordinator_ignores_team_toggle(self, coordinator):
        assert scope(RECORDS, coordinator, team_only=True) == RECORDS

    def test_manager_without_team_filter(self, manager):
        assert scope(RECORDS, manager, team_only=False) == RECORDS

    def test_manager_team_only_matches_case_insensitively(self, manager):
        visible = scope(RECORDS, manager, team_only=True)

        assert [r.id for r in visible] == ["1", "2"]

    def test_employee_sees_nothing(self, employee):
        assert scope(RECORDS, employee) == []

    def test_input_not_modified(self, manager):
        records = list(RECORDS)
        scope(records, manager, team_only=True)

        assert records == RECORDS


class TestPermissions:

    def test_manager(self, manager):
        assert can_view_dashboard(manager)
        assert can_send_reminders(manager)
        assert not can_resend_invites(manager)
        assert not can_escalate(manager)

    def test_coordinator(self, coordinator):
        assert can_resend_invites(coordinator)
        assert can_escalate(coordinator)

    def test_employee(self, employee):
        assert not can_view_dashboard(employee)
        assert not can_send_reminders(employee)
