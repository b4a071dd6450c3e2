"""
Tests for dashboard text rendering and CSV export.
"""
import csv
import io
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from attestation_bot.services.bulk_actions import ActionResult
from attestation_bot.services.dashboard import Dashboard
from attestation_bot.services.report_formatter import (
    CSV_HEADER,
    export_csv,
    format_action_result,
    format_dashboard,
    format_pending_invites,
    page_count,
    page_slice
)
from tests.factories import NOW, dashboard_payload, invite_payload, make_record, record_payload


async def loaded_dashboard(caller, records):
    api = MagicMock()
    api.dashboard = AsyncMock(return_value=dashboard_payload(records))
    dashboard = Dashboard(api, caller, key="42", clock=lambda: NOW)
    await dashboard.open("c1")
    return dashboard


class TestPaging:

    @pytest.mark.parametrize("total,expected", [(0, 1), (1, 1), (10, 1), (11, 2), (25, 3)])
    def test_page_count(self, total, expected):
        assert page_count(total, 10) == expected

    def test_page_slice_clamps(self):
        records = [make_record(str(i)) for i in range(5)]

        assert [r.id for r in page_slice(records, 1, 2)] == ["2", "3"]
        assert [r.id for r in page_slice(records, 99, 2)] == ["4"]


class TestFormatDashboard:

    @pytest.mark.asyncio
    async def test_header_counts_and_labels(self, admin):
        dashboard = await loaded_dashboard(admin, [
            record_payload("1", user_name="Alice <Ops>"),
            record_payload("2", status="completed"),
            invite_payload("9"),
        ])

        text = format_dashboard(dashboard, NOW, page_size=10)

        assert "Q1 Asset Attestation" in text
        assert "<b>Participants =</b> [ 3 ]" in text
        assert "[ 33% ]" in text
        assert "Pending · 2d late" in text
        assert "Alice &lt;Ops&gt;" in text
        assert "Last refreshed" in text
        assert "auto-refresh on" in text

    @pytest.mark.asyncio
    async def test_paging_and_selection_footer(self, admin):
        dashboard = await loaded_dashboard(admin, [record_payload(str(i)) for i in range(3)])
        dashboard.toggle("0")

        text = format_dashboard(dashboard, NOW, page_size=1)

        assert "📄 1/3" in text
        assert "1 selected" in text

    @pytest.mark.asyncio
    async def test_empty_view(self, admin):
        dashboard = await loaded_dashboard(admin, [record_payload("1")])
        dashboard.set_search("nobody")

        assert "No participants match" in format_dashboard(dashboard, NOW)

    @pytest.mark.asyncio
    async def test_stale_data_warning(self, admin):
        dashboard = await loaded_dashboard(admin, [record_payload("1")])
        dashboard.load_error = "Failed to load campaign dashboard"

        assert "showing previous data" in format_dashboard(dashboard, NOW)

    def test_not_loaded(self, admin):
        dashboard = Dashboard(MagicMock(), admin, clock=lambda: NOW)
        dashboard.load_error = "Failed to load campaign dashboard"

        assert format_dashboard(dashboard, NOW).startswith("❌")


class TestActionResult:

    def test_partial_failure_shows_both_numbers(self):
        result = ActionResult(ok=True, message="2 sent successfully, 1 failed", sent=2, failed=1)

        text = format_action_result("Bulk reminders", result)

        assert text.startswith("✅")
        assert "2 sent" in text and "1 failed" in text

    def test_failure(self):
        text = format_action_result("Invite", ActionResult(ok=False, message="Failed to resend invite"))

        assert text.startswith("❌")


class TestExportCsv:

    def test_rows(self):
        reminded = NOW - timedelta(days=1)
        records = [
            make_record("1", user_name="Alice, A.", reminder_sent_at=reminded),
            make_record("2"),
        ]

        rows = list(csv.reader(io.StringIO(export_csv(records))))

        assert rows[0] == CSV_HEADER
        assert rows[1][:3] == ["Alice, A.", "user1@example.com", "pending"]
        assert rows[1][5] == reminded.isoformat()
        assert rows[2][5] == ""


class TestPendingInvites:

    def test_lists_invites(self):
        text = format_pending_invites("Q1", [
            {"id": 9, "email": "new@example.com", "invite_sent_at": "2025-03-12T08:00:00Z"},
        ])

        assert "new@example.com" in text
        assert "2025/03/12" in text
        assert "[ 1 ]" in text

    def test_no_invites(self):
        assert "registered" in format_pending_invites("Q1", [])
