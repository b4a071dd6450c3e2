"""
Campaign and attestation record value types parsed from the attestation API.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Optional

logger = logging.getLogger(__name__)


class RecordStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    UNREGISTERED = "unregistered"


class Role(str, Enum):
    ADMIN = "admin"
    ATTESTATION_COORDINATOR = "attestation_coordinator"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        """Map an identity-provider role string to a Role, defaulting to employee."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.EMPLOYEE


class Tab(str, Enum):
    ALL = "all"
    OVERDUE = "overdue"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    UNREGISTERED = "unregistered"


ALL_COMPANIES = "all"
INVITE_KEY_PREFIX = "invite:"


@dataclass(frozen=True)
class Caller:
    role: Role
    email: str


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse an API timestamp into an aware datetime.

    Accepts ISO-8601 strings (with or without a trailing 'Z'), datetimes and
    epoch milliseconds. Naive values are treated as UTC.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        dt = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class Campaign:
    id: str
    name: str
    start_date: Optional[datetime]
    escalation_days: int = 0
    reminder_days: int = 0
    status: str = "active"
    end_date: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: dict) -> "Campaign":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or f"Campaign {data['id']}",
            start_date=parse_timestamp(data.get("start_date")),
            escalation_days=max(0, int(data.get("escalation_days") or 0)),
            reminder_days=max(0, int(data.get("reminder_days") or 0)),
            status=data.get("status") or "active",
            end_date=parse_timestamp(data.get("end_date")),
        )

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass(frozen=True)
class AttestationRecord:
    id: Optional[str]
    user_name: str
    user_email: str
    status: RecordStatus
    manager_email: Optional[str] = None
    companies: FrozenSet[str] = field(default_factory=frozenset)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    invite_sent_at: Optional[datetime] = None
    reminder_sent_at: Optional[datetime] = None
    escalation_sent_at: Optional[datetime] = None
    is_pending_invite: bool = False
    invite_id: Optional[str] = None

    @property
    def key(self) -> str:
        """Selection key; invite ids live in their own namespace."""
        if self.is_pending_invite:
            return f"{INVITE_KEY_PREFIX}{self.invite_id}"
        return str(self.id)

    @property
    def is_completed(self) -> bool:
        return self.status == RecordStatus.COMPLETED

    @classmethod
    def from_api(cls, data: dict) -> Optional["AttestationRecord"]:
        """
        Build a record from a dashboard payload entry.

        Returns None for entries that cannot be part of a dashboard: unknown
        statuses, or pending invites without an invite id.
        """
        try:
            status = RecordStatus(data.get("status"))
        except ValueError:
            logger.warning(f"Dropping record {data.get('id')}: unknown status {data.get('status')!r}")
            return None

        is_pending_invite = bool(data.get("is_pending_invite"))
        invite_id = data.get("invite_id")

        if is_pending_invite:
            if invite_id is None:
                logger.warning(f"Dropping pending invite for {data.get('user_email')}: missing invite_id")
                return None
            status = RecordStatus.UNREGISTERED
        elif data.get("id") is None:
            logger.warning(f"Dropping record for {data.get('user_email')}: missing id")
            return None

        return cls(
            id=None if data.get("id") is None else str(data["id"]),
            user_name=data.get("user_name") or "",
            user_email=data.get("user_email") or "",
            status=status,
            manager_email=data.get("manager_email") or None,
            companies=frozenset(data.get("companies") or ()),
            started_at=parse_timestamp(data.get("started_at")),
            completed_at=parse_timestamp(data.get("completed_at")),
            invite_sent_at=parse_timestamp(data.get("invite_sent_at")),
            reminder_sent_at=parse_timestamp(data.get("reminder_sent_at")),
            escalation_sent_at=parse_timestamp(data.get("escalation_sent_at")),
            is_pending_invite=is_pending_invite,
            invite_id=None if invite_id is None else str(invite_id),
        )


def parse_records(entries) -> list:
    """Parse dashboard payload entries, skipping malformed ones."""
    records = []
    for entry in entries or []:
        if not isinstance(entry, dict):
            continue
        try:
            record = AttestationRecord.from_api(entry)
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Dropping malformed record {entry.get('id')}: {e}")
            continue
        if record is not None:
            records.append(record)
    return records
