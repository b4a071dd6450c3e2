"""
Tab, company and search filtering over the scoped record set.
"""
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Sequence, Tuple

from .deadline import is_overdue
from .models import ALL_COMPANIES, AttestationRecord, Campaign, RecordStatus, Tab


@dataclass(frozen=True)
class FilterCriteria:
    tab: Tab = Tab.ALL
    search: str = ""
    company: str = ALL_COMPANIES


@dataclass(frozen=True)
class DashboardCounts:
    total: int = 0
    overdue: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    unregistered: int = 0

    def for_tab(self, tab: Tab) -> int:
        if tab == Tab.ALL:
            return self.total
        return getattr(self, tab.value)


def _status_predicate(status: RecordStatus) -> Callable:
    return lambda record, campaign, now: record.status == status


TAB_PREDICATES: Dict[Tab, Callable] = {
    Tab.OVERDUE: is_overdue,
    Tab.PENDING: _status_predicate(RecordStatus.PENDING),
    Tab.IN_PROGRESS: _status_predicate(RecordStatus.IN_PROGRESS),
    Tab.COMPLETED: _status_predicate(RecordStatus.COMPLETED),
    Tab.UNREGISTERED: _status_predicate(RecordStatus.UNREGISTERED),
}


def matches_search(record: AttestationRecord, query: str) -> bool:
    """Case-insensitive substring match on name and email only."""
    query = query.lower()
    return query in record.user_name.lower() or query in record.user_email.lower()


def filter_records(
    scoped: Sequence[AttestationRecord],
    criteria: FilterCriteria,
    campaign: Campaign,
    now: datetime
) -> List[AttestationRecord]:
    """
    Apply company, tab and search stages in that order.

    Every stage narrows the output of the previous one. The input sequence
    is never modified.
    """
    records = list(scoped)

    if criteria.company != ALL_COMPANIES:
        records = [r for r in records if criteria.company in r.companies]

    predicate = TAB_PREDICATES.get(criteria.tab)
    if predicate is not None:
        records = [r for r in records if predicate(r, campaign, now)]

    query = criteria.search.strip()
    if query:
        records = [r for r in records if matches_search(r, query)]

    return records


def count_records(
    scoped: Sequence[AttestationRecord],
    campaign: Campaign,
    now: datetime
) -> DashboardCounts:
    """Badge counts over the scoped set, independent of the active tab."""
    statuses = Counter(r.status for r in scoped)
    return DashboardCounts(
        total=len(scoped),
        overdue=sum(1 for r in scoped if is_overdue(r, campaign, now)),
        pending=statuses[RecordStatus.PENDING],
        in_progress=statuses[RecordStatus.IN_PROGRESS],
        completed=statuses[RecordStatus.COMPLETED],
        unregistered=statuses[RecordStatus.UNREGISTERED],
    )


def available_companies(scoped: Sequence[AttestationRecord]) -> List[Tuple[str, int]]:
    """Company names with the number of records linked to each, sorted by name."""
    counts = Counter(company for r in scoped for company in r.companies)
    return sorted(counts.items(), key=lambda item: item[0].lower())
