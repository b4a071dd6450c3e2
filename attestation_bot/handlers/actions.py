"""
Reminder, invite and escalation handlers.
"""
import asyncio
import logging
from typing import Awaitable, Optional

from aiogram import Router, F
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message

from ..database.repositories.user_repository import UserRepository
from ..services.bulk_actions import ActionResult
from ..services.dashboard import Dashboard, DashboardStore
from ..services.models import INVITE_KEY_PREFIX
from ..services.report_formatter import format_action_result
from ..services.visibility import can_escalate, can_resend_invites, can_send_reminders
from ..utils.logging_helpers import log_error
from .common import NO_ACCESS_TEXT, resolve_caller, show_dashboard

logger = logging.getLogger(__name__)
router = Router()


async def _run_with_busy_marker(query: CallbackQuery, dashboard: Dashboard, action: Awaitable[ActionResult]) -> ActionResult:
    """Run an action while the dashboard shows its busy markers"""
    task = asyncio.ensure_future(action)
    try:
        await asyncio.sleep(0)
        if not task.done():
            await show_dashboard(query.message, dashboard)
    finally:
        result = await task
    return result


async def _loaded_dashboard(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    caller = await resolve_caller(users, query.from_user.id)
    if caller is None:
        await query.answer("⛔️ No access", show_alert=True)
        return None, None

    dashboard = store.get(query.from_user.id)
    if dashboard is None or dashboard.caller != caller or not dashboard.loaded:
        await query.answer("ℹ️ Open a campaign first", show_alert=True)
        return None, None
    return caller, dashboard


async def _report(query: CallbackQuery, dashboard: Dashboard, title: str, result: ActionResult) -> None:
    await show_dashboard(query.message, dashboard)
    if result.ok:
        await query.answer(f"✅ {result.message}" if result.dispatched else f"ℹ️ {result.message}")
    else:
        await query.answer(f"❌ {title}: {result.message}", show_alert=True)


@router.callback_query(F.data.startswith("drem:"))
async def remind_one(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    """Send one reminder from the dashboard row button."""
    caller, dashboard = await _loaded_dashboard(query, store, users)
    if dashboard is None:
        return
    if not can_send_reminders(caller):
        await query.answer("⛔️ You cannot send reminders", show_alert=True)
        return

    record_id = query.data.split(":", 1)[1]
    record = dashboard.find(record_id)
    if (
        record is None
        or record.is_completed
        or record.is_pending_invite
        or record not in dashboard.scoped_records()
    ):
        await query.answer("ℹ️ This participant is no longer awaiting a reminder", show_alert=True)
        return

    try:
        result = await _run_with_busy_marker(query, dashboard, dashboard.send_reminder(record_id))
        await _report(query, dashboard, "Reminder", result)

    except Exception as e:
        log_error(e)
        logger.error(f"Error sending reminder for record {record_id}: {e}")
        await query.answer("❌ Failed to send reminder", show_alert=True)


@router.callback_query(F.data.startswith("dinv:"))
async def resend_one(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    """Resend one registration invite from the dashboard row button."""
    caller, dashboard = await _loaded_dashboard(query, store, users)
    if dashboard is None:
        return
    if not can_resend_invites(caller):
        await query.answer("⛔️ You cannot resend invites", show_alert=True)
        return

    invite_id = query.data.split(":", 1)[1]
    if dashboard.find(f"{INVITE_KEY_PREFIX}{invite_id}") is None:
        await query.answer("ℹ️ This invite is no longer pending", show_alert=True)
        return

    try:
        result = await _run_with_busy_marker(query, dashboard, dashboard.resend_invite(invite_id))
        await _report(query, dashboard, "Invite", result)

    except Exception as e:
        log_error(e)
        logger.error(f"Error resending invite {invite_id}: {e}")
        await query.answer("❌ Failed to resend invite", show_alert=True)


@router.callback_query(F.data.startswith("dbulk:"))
async def bulk_action(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    """Bulk reminders or invite resends for the visible selection."""
    caller, dashboard = await _loaded_dashboard(query, store, users)
    if dashboard is None:
        return

    kind = query.data.split(":", 1)[1]
    try:
        if kind == "remind":
            if not can_send_reminders(caller):
                await query.answer("⛔️ You cannot send reminders", show_alert=True)
                return
            if dashboard.actions.bulk_reminding:
                await query.answer("⌛ Bulk reminders already in progress")
                return
            await query.answer("⏳ Sending reminders...")
            title = "Bulk reminders"
            result = await dashboard.bulk_remind()

        elif kind == "invite":
            if not can_resend_invites(caller):
                await query.answer("⛔️ You cannot resend invites", show_alert=True)
                return
            if dashboard.actions.bulk_resending:
                await query.answer("⌛ Invite resend already in progress")
                return
            await query.answer("⏳ Resending invites...")
            title = "Invite resend"
            result = await dashboard.bulk_resend_invites()

        else:
            await query.answer("❌ Unknown action", show_alert=True)
            return

        await show_dashboard(query.message, dashboard)
        await query.message.answer(format_action_result(title, result), parse_mode="HTML")

    except Exception as e:
        log_error(e)
        logger.error(f"Error in bulk action {kind}: {e}")
        await query.message.answer("❌ Bulk action failed")


async def _command_dashboard(message: Message, store: DashboardStore, users: UserRepository):
    caller = await resolve_caller(users, message.from_user.id)
    if caller is None:
        await message.answer(NO_ACCESS_TEXT)
        return None, None

    dashboard = store.get(message.from_user.id)
    if dashboard is None or dashboard.caller != caller or not dashboard.loaded:
        await message.answer("ℹ️ Open a campaign first with /campaigns")
        return None, None
    return caller, dashboard


def _scoped_record(dashboard: Dashboard, key: str):
    for record in dashboard.scoped_records():
        if record.key == key:
            return record
    return None


@router.message(Command("remind"))
async def remind_cmd(message: Message, command: CommandObject, store: DashboardStore, users: UserRepository):
    """/remind <record_id>"""
    caller, dashboard = await _command_dashboard(message, store, users)
    if dashboard is None:
        return
    if not can_send_reminders(caller):
        await message.answer("⛔️ You cannot send reminders")
        return

    record_id = (command.args or "").strip()
    record = _scoped_record(dashboard, record_id) if record_id else None
    if record is None or record.is_completed or record.is_pending_invite:
        await message.answer("ℹ️ Usage: /remind &lt;record id&gt; (an incomplete participant of the open campaign)")
        return

    try:
        result = await dashboard.send_reminder(record_id)
        await message.answer(format_action_result("Reminder", result), parse_mode="HTML")

    except Exception as e:
        log_error(e)
        logger.error(f"Error in remind command: {e}")


@router.message(Command("resend"))
async def resend_cmd(message: Message, command: CommandObject, store: DashboardStore, users: UserRepository):
    """/resend <invite_id>"""
    caller, dashboard = await _command_dashboard(message, store, users)
    if dashboard is None:
        return
    if not can_resend_invites(caller):
        await message.answer("⛔️ You cannot resend invites")
        return

    invite_id = (command.args or "").strip()
    if not invite_id or _scoped_record(dashboard, f"{INVITE_KEY_PREFIX}{invite_id}") is None:
        await message.answer("ℹ️ Usage: /resend &lt;invite id&gt; (a pending invite of the open campaign)")
        return

    try:
        result = await dashboard.resend_invite(invite_id)
        await message.answer(format_action_result("Invite", result), parse_mode="HTML")

    except Exception as e:
        log_error(e)
        logger.error(f"Error in resend command: {e}")


def _split_escalation(args: Optional[str]):
    parts = (args or "").strip().split(maxsplit=1)
    if not parts:
        return "", None
    custom_message = parts[1].strip() if len(parts) > 1 else None
    return parts[0], custom_message or None


@router.message(Command("escalate"))
async def escalate_cmd(message: Message, command: CommandObject, store: DashboardStore, users: UserRepository):
    """/escalate <record_id> [message for the manager]"""
    caller, dashboard = await _command_dashboard(message, store, users)
    if dashboard is None:
        return
    if not can_escalate(caller):
        await message.answer("⛔️ You cannot escalate to managers")
        return

    record_id, custom_message = _split_escalation(command.args)
    record = _scoped_record(dashboard, record_id) if record_id else None
    if record is None or record.is_completed or record.is_pending_invite:
        await message.answer("ℹ️ Usage: /escalate &lt;record id&gt; [message]")
        return
    if not record.manager_email:
        await message.answer("ℹ️ This participant has no manager to escalate to")
        return

    try:
        result = await dashboard.escalate(record_id, custom_message)
        await message.answer(format_action_result("Escalation", result), parse_mode="HTML")

    except Exception as e:
        log_error(e)
        logger.error(f"Error in escalate command: {e}")