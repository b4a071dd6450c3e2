"""
Role based visibility rules for the campaign dashboard.
"""
import logging
from typing import Iterable, List

from .models import AttestationRecord, Caller, Role

logger = logging.getLogger(__name__)

DASHBOARD_ROLES = frozenset({Role.ADMIN, Role.ATTESTATION_COORDINATOR, Role.MANAGER})
INVITE_ROLES = frozenset({Role.ADMIN, Role.ATTESTATION_COORDINATOR})


def can_view_dashboard(caller: Caller) -> bool:
    return caller.role in DASHBOARD_ROLES


def can_send_reminders(caller: Caller) -> bool:
    return caller.role in DASHBOARD_ROLES


def can_resend_invites(caller: Caller) -> bool:
    return caller.role in INVITE_ROLES


def can_escalate(caller: Caller) -> bool:
    return caller.role in INVITE_ROLES


def scope(
    records: Iterable[AttestationRecord],
    caller: Caller,
    team_only: bool = False
) -> List[AttestationRecord]:
    """
    Restrict the record set to what the caller may see.

    Args:
        records: Full record set of the campaign
        caller: Role and email of the dashboard user
        team_only: Manager opt-in to see only direct reports

    Returns:
        Records visible to the caller
    """
    if caller.role in (Role.ADMIN, Role.ATTESTATION_COORDINATOR):
        return list(records)

    if caller.role == Role.MANAGER:
        if not team_only:
            return list(records)
        email = (caller.email or "").strip().lower()
        return [
            r for r in records
            if r.manager_email and r.manager_email.strip().lower() == email
        ]

    logger.warning(f"Role {caller.role.value} has no dashboard scope")
    return []
