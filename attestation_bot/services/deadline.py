"""
Deadline arithmetic for attestation campaigns.
"""
from datetime import datetime
from typing import Optional

from .models import AttestationRecord, Campaign

SECONDS_PER_DAY = 24 * 3600


def days_elapsed(start_date: Optional[datetime], now: datetime) -> int:
    """Whole days since start_date; never negative."""
    if start_date is None:
        return 0
    seconds = (now - start_date).total_seconds()
    if seconds < 0:
        return 0
    return int(seconds // SECONDS_PER_DAY)


def days_late(record: AttestationRecord, campaign: Campaign, now: datetime) -> int:
    if record.is_completed:
        return 0
    elapsed = days_elapsed(campaign.start_date, now)
    return max(0, elapsed - campaign.escalation_days)


def is_overdue(record: AttestationRecord, campaign: Campaign, now: datetime) -> bool:
    if record.is_completed:
        return False
    return days_late(record, campaign, now) > 0
