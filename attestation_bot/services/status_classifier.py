"""
Record lifecycle classification and lateness labels.
"""
from dataclasses import dataclass
from datetime import datetime

from .deadline import days_late
from .models import AttestationRecord, Campaign, RecordStatus

STATUS_LABELS = {
    RecordStatus.PENDING: "Pending",
    RecordStatus.IN_PROGRESS: "In progress",
    RecordStatus.COMPLETED: "Completed",
    RecordStatus.UNREGISTERED: "Unregistered",
}

STATUS_EMOJI = {
    RecordStatus.PENDING: "⏳",
    RecordStatus.IN_PROGRESS: "🔄",
    RecordStatus.COMPLETED: "✅",
    RecordStatus.UNREGISTERED: "✉️",
}


@dataclass(frozen=True)
class RecordState:
    lifecycle: RecordStatus
    is_overdue: bool
    days_late: int

    @property
    def label(self) -> str:
        base = STATUS_LABELS[self.lifecycle]
        if self.is_overdue:
            return f"{base} · {self.days_late}d late"
        return base

    @property
    def emoji(self) -> str:
        if self.is_overdue:
            return "🔴"
        return STATUS_EMOJI[self.lifecycle]


def classify(record: AttestationRecord, campaign: Campaign, now: datetime) -> RecordState:
    """
    Classify a record for display.

    The lifecycle is read straight from the record; lateness is derived from
    the campaign start and escalation window.
    """
    late = days_late(record, campaign, now)
    return RecordState(
        lifecycle=record.status,
        is_overdue=late > 0,
        days_late=late,
    )
