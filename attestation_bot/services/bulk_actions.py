"""
Reminder, invite-resend and escalation dispatch with per-item busy tracking.
"""
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, Set

from ..api.client import AttestationAPI
from .models import AttestationRecord

logger = logging.getLogger(__name__)

Reload = Callable[[], Awaitable[bool]]


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    message: str
    sent: int = 0
    failed: int = 0
    dispatched: bool = True


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


class BulkActionCoordinator:
    """
    Runs notification actions against the attestation API.

    Every request that reaches the API and succeeds, fully or partially,
    is followed by exactly one reload. Failed requests leave local state
    untouched so the user can retry.
    """

    def __init__(self, api: AttestationAPI, reload: Reload):
        self.api = api
        self.reload = reload

        self.reminding: Set[str] = set()
        self.resending: Set[str] = set()
        self.escalating: Set[str] = set()
        self.bulk_reminding = False
        self.bulk_resending = False

    def is_busy(self, record: AttestationRecord) -> bool:
        if record.is_pending_invite:
            return record.invite_id in self.resending
        return record.id in self.reminding or record.id in self.escalating

    async def bulk_remind(self, campaign_id: str, record_ids: Sequence[str]) -> ActionResult:
        if not record_ids:
            return ActionResult(ok=True, message="No registered participants selected", dispatched=False)

        self.bulk_reminding = True
        try:
            summary = await self.api.bulk_remind(campaign_id, record_ids)
        finally:
            self.bulk_reminding = False

        if summary is None:
            logger.warning(f"Bulk remind for campaign {campaign_id} failed ({len(record_ids)} ids)")
            return ActionResult(ok=False, message="Failed to send bulk reminders")

        sent, failed = summary["sent"], summary["failed"]
        logger.info(f"📤 Bulk remind for campaign {campaign_id}: sent={sent}, failed={failed}")

        message = f"{sent} sent successfully"
        if failed > 0:
            message += f", {failed} failed"

        await self.reload()
        return ActionResult(ok=True, message=message, sent=sent, failed=failed)

    async def bulk_resend_invites(self, campaign_id: str, invite_ids: Sequence[str]) -> ActionResult:
        if not invite_ids:
            return ActionResult(ok=True, message="No unregistered participants selected", dispatched=False)

        self.bulk_resending = True
        try:
            emails_sent = await self.api.resend_invites(campaign_id, invite_ids)
        finally:
            self.bulk_resending = False

        if emails_sent is None:
            logger.warning(f"Invite resend for campaign {campaign_id} failed ({len(invite_ids)} ids)")
            return ActionResult(ok=False, message="Failed to resend invites")

        logger.info(f"📤 Resent {emails_sent}/{len(invite_ids)} invites for campaign {campaign_id}")

        await self.reload()
        return ActionResult(
            ok=True,
            message=f"{_plural(emails_sent, 'invite')} sent successfully",
            sent=emails_sent,
            failed=max(0, len(invite_ids) - emails_sent)
        )

    async def _single(
        self,
        busy: Set[str],
        item_id: str,
        call: Callable[[], Awaitable[bool]],
        success: str,
        failure: str
    ) -> ActionResult:
        if item_id in busy:
            return ActionResult(ok=False, message="Already in progress", dispatched=False)

        busy.add(item_id)
        try:
            ok = await call()
        finally:
            busy.discard(item_id)

        if not ok:
            return ActionResult(ok=False, message=failure, failed=1)

        await self.reload()
        return ActionResult(ok=True, message=success, sent=1)

    async def send_reminder(self, record_id: str) -> ActionResult:
        return await self._single(
            self.reminding,
            record_id,
            lambda: self.api.send_reminder(record_id),
            "Email reminder sent to employee",
            "Failed to send reminder"
        )

    async def resend_invite(self, invite_id: str) -> ActionResult:
        return await self._single(
            self.resending,
            invite_id,
            lambda: self.api.resend_invite(invite_id),
            "Registration invite email sent successfully",
            "Failed to resend invite"
        )

    async def escalate(self, record_id: str, custom_message: Optional[str] = None) -> ActionResult:
        return await self._single(
            self.escalating,
            record_id,
            lambda: self.api.escalate(record_id, custom_message),
            "Escalation sent to manager",
            "Failed to send escalation"
        )
