"""
Shared helpers for dashboard handlers: caller resolution and rendering.
"""
import logging
from typing import Optional, Tuple

from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import InlineKeyboardMarkup, Message

from ..config.settings import RECORDS_PAGE_SIZE, SUPERADMINS, TIMEZONE
from ..database.repositories.user_repository import UserRepository
from ..keyboards.inline_keyboards import get_dashboard_kb
from ..services.dashboard import Dashboard
from ..services.models import Caller, Role
from ..services.report_formatter import format_dashboard, page_count, page_slice
from ..services.visibility import can_resend_invites, can_send_reminders, can_view_dashboard

logger = logging.getLogger(__name__)

NO_ACCESS_TEXT = (
    "⛔️ The campaign dashboard is available to admins, attestation "
    "coordinators and managers only.\n\n"
    "Ask an admin to link your account with /setrole."
)


async def resolve_caller(users: UserRepository, telegram_id: int) -> Optional[Caller]:
    """Caller allowed to use the dashboard, or None"""
    caller = await users.get_caller(telegram_id, SUPERADMINS)
    if caller is None or not can_view_dashboard(caller):
        return None
    return caller


def render_dashboard(dashboard: Dashboard) -> Tuple[str, InlineKeyboardMarkup]:
    """Text and keyboard for the dashboard's current state"""
    now = dashboard.clock()
    visible = dashboard.visible_records(now)
    pages = page_count(len(visible), RECORDS_PAGE_SIZE)
    dashboard.page = min(dashboard.page, pages - 1)

    text = format_dashboard(dashboard, now, RECORDS_PAGE_SIZE, TIMEZONE)
    kb = get_dashboard_kb(
        dashboard,
        page_slice(visible, dashboard.page, RECORDS_PAGE_SIZE),
        dashboard.counts(now),
        dashboard.selection.partition(visible),
        pages,
        can_remind=can_send_reminders(dashboard.caller),
        can_invite=can_resend_invites(dashboard.caller),
        is_manager=dashboard.caller.role == Role.MANAGER
    )
    return text, kb


async def show_dashboard(message: Message, dashboard: Dashboard) -> None:
    """Edit a dashboard message in place, ignoring 'not modified' errors"""
    text, kb = render_dashboard(dashboard)
    try:
        await message.edit_text(text, reply_markup=kb, parse_mode="HTML")
    except TelegramBadRequest as e:
        if "message is not modified" not in str(e):
            raise


async def push_dashboard(bot: Bot, chat_id: int, message_id: int, dashboard: Dashboard) -> None:
    """Re-render a dashboard message after a background refresh"""
    text, kb = render_dashboard(dashboard)
    try:
        await bot.edit_message_text(
            text,
            chat_id=chat_id,
            message_id=message_id,
            reply_markup=kb,
            parse_mode="HTML"
        )
    except TelegramBadRequest as e:
        if "message is not modified" not in str(e):
            logger.warning(f"Could not update dashboard in chat {chat_id}: {e}")
