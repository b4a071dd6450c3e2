"""
Unit tests for tab, company and search filtering.
"""
from attestation_bot.services.models import RecordStatus, Tab
from attestation_bot.services.query_filter import (
    DashboardCounts,
    FilterCriteria,
    available_companies,
    count_records,
    filter_records
)
from tests.factories import NOW, make_campaign, make_invite, make_record

CAMPAIGN = make_campaign()

A = make_record("A", RecordStatus.PENDING, companies=frozenset({"X"}))
B = make_record("B", RecordStatus.COMPLETED, companies=frozenset({"Y"}))


class TestFilterComposition:

    def test_company_then_tab(self):
        criteria = FilterCriteria(tab=Tab.PENDING, company="X")

        assert filter_records([A, B], criteria, CAMPAIGN, NOW) == [A]

    def test_tab_alone(self):
        assert filter_records([A, B], FilterCriteria(tab=Tab.COMPLETED), CAMPAIGN, NOW) == [B]

    def test_all_tab_passes_everything(self):
        assert filter_records([A, B], FilterCriteria(), CAMPAIGN, NOW) == [A, B]

    def test_overdue_tab(self):
        on_time = make_campaign(escalation_days=30)

        assert filter_records([A, B], FilterCriteria(tab=Tab.OVERDUE), CAMPAIGN, NOW) == [A]
        assert filter_records([A, B], FilterCriteria(tab=Tab.OVERDUE), on_time, NOW) == []

    def test_unregistered_tab(self):
        invite = make_invite("9")

        assert filter_records([A, invite], FilterCriteria(tab=Tab.UNREGISTERED), CAMPAIGN, NOW) == [invite]

    def test_input_not_modified(self):
        records = [A, B]
        filter_records(records, FilterCriteria(tab=Tab.PENDING, company="X", search="a"), CAMPAIGN, NOW)

        assert records == [A, B]


class TestSearch:

    def test_matches_name_case_insensitively(self):
        alice = make_record("1", user_name="Alice Smith", user_email="asmith@example.com")
        bob = make_record("2", user_name="Bob Jones", user_email="bjones@example.com")

        assert filter_records([alice, bob], FilterCriteria(search="SMITH"), CAMPAIGN, NOW) == [alice]

    def test_matches_email(self):
        alice = make_record("1", user_name="Alice", user_email="alice@corp.example")

        assert filter_records([alice], FilterCriteria(search="corp.ex"), CAMPAIGN, NOW) == [alice]

    def test_does_not_match_company(self):
        record = make_record("1", companies=frozenset({"Initech"}))

        assert filter_records([record], FilterCriteria(search="initech"), CAMPAIGN, NOW) == []

    def test_blank_search_is_ignored(self):
        assert filter_records([A, B], FilterCriteria(search="   "), CAMPAIGN, NOW) == [A, B]


class TestCounts:

    def test_counts_over_scoped_set(self):
        records = [
            A,
            B,
            make_record("C", RecordStatus.IN_PROGRESS),
            make_invite("9"),
        ]

        counts = count_records(records, CAMPAIGN, NOW)

        assert counts == DashboardCounts(
            total=4,
            overdue=3,
            pending=1,
            in_progress=1,
            completed=1,
            unregistered=1
        )
        assert counts.for_tab(Tab.ALL) == 4
        assert counts.for_tab(Tab.OVERDUE) == 3

    def test_empty(self):
        assert count_records([], CAMPAIGN, NOW) == DashboardCounts()


class TestAvailableCompanies:

    def test_counts_each_company_and_sorts_by_name(self):
        records = [
            make_record("1", companies=frozenset({"beta", "Alpha"})),
            make_record("2", companies=frozenset({"Alpha"})),
            make_record("3"),
        ]

        assert available_companies(records) == [("Alpha", 2), ("beta", 1)]
