"""
Unit tests for deadline arithmetic.
"""
from datetime import timedelta

from attestation_bot.services.deadline import days_elapsed, days_late, is_overdue
from attestation_bot.services.models import RecordStatus
from tests.factories import NOW, make_campaign, make_record


class TestDaysElapsed:
    """Whole days between campaign start and now"""

    def test_counts_whole_days(self):
        assert days_elapsed(NOW - timedelta(days=7, hours=5), NOW) == 7

    def test_partial_day_rounds_down(self):
        assert days_elapsed(NOW - timedelta(hours=23, minutes=59), NOW) == 0

    def test_future_start_is_zero(self):
        assert days_elapsed(NOW + timedelta(days=3), NOW) == 0

    def test_missing_start_is_zero(self):
        assert days_elapsed(None, NOW) == 0


class TestDaysLate:
    """Lateness against the escalation threshold"""

    def test_pending_record_past_threshold(self):
        campaign = make_campaign(escalation_days=5, start_date=NOW - timedelta(days=7))
        record = make_record(status=RecordStatus.PENDING)

        assert days_late(record, campaign, NOW) == 2
        assert is_overdue(record, campaign, NOW) is True

    def test_pending_record_within_threshold(self):
        campaign = make_campaign(escalation_days=10, start_date=NOW - timedelta(days=7))
        record = make_record(status=RecordStatus.PENDING)

        assert days_late(record, campaign, NOW) == 0
        assert is_overdue(record, campaign, NOW) is False

    def test_completed_record_is_never_late(self):
        campaign = make_campaign(escalation_days=0, start_date=NOW - timedelta(days=400))
        record = make_record(status=RecordStatus.COMPLETED)

        assert days_late(record, campaign, NOW) == 0
        assert is_overdue(record, campaign, NOW) is False

    def test_exact_threshold_is_not_overdue(self):
        campaign = make_campaign(escalation_days=7, start_date=NOW - timedelta(days=7))

        assert is_overdue(make_record(status=RecordStatus.IN_PROGRESS), campaign, NOW) is False

    def test_campaign_not_started_yet(self):
        campaign = make_campaign(escalation_days=0, start_date=NOW + timedelta(days=1))

        assert days_late(make_record(), campaign, NOW) == 0
