"""
Basic command handlers for the bot.
"""
import logging

from aiogram import Bot, Router, F
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message

from ..config.settings import SUPERADMINS
from ..database.repositories.user_repository import UserRepository
from ..keyboards.main_keyboards import WHOAMI_BUTTON, get_main_kb
from ..schedulers.refresh import RefreshScheduler
from ..services.dashboard import DashboardStore
from ..services.models import Role
from ..services.visibility import can_view_dashboard
from ..utils.date_helpers import now_str
from ..utils.logging_helpers import log_error
from ..utils.text_helpers import clean_email, full_name, safe_text

logger = logging.getLogger(__name__)
router = Router()

ROLE_TITLES = {
    Role.ADMIN: "Admin",
    Role.ATTESTATION_COORDINATOR: "Attestation coordinator",
    Role.MANAGER: "Manager",
    Role.EMPLOYEE: "Employee",
}


@router.message(Command("start"))
async def start_cmd(message: Message, bot: Bot, users: UserRepository):
    """Handle /start command."""
    try:
        user = message.from_user
        is_new = await users.ensure_user(user.id, full_name(user.first_name, user.last_name))

        caller = await users.get_caller(user.id, SUPERADMINS)
        role = caller.role if caller else Role.EMPLOYEE

        await message.answer(
            "👋 Welcome to the attestation campaign bot!",
            reply_markup=get_main_kb(role)
        )

        if is_new:
            username = f"@{user.username}" if user.username else "N/A"
            notification_text = (
                f"👤 <b>A new user</b> joined the bot...!\n\n"
                f"📛 <b>Name =</b> {safe_text(full_name(user.first_name, user.last_name))}\n"
                f"🆔 <b>Username =</b> {username}\n"
                f"🔢 <b>ID =</b> [ <code>{user.id}</code> ]\n"
                f"📅 <b>Joined at =</b> {now_str()}\n\n"
                f"Link them with <code>/setrole {user.id} &lt;role&gt; &lt;email&gt;</code>"
            )

            for admin_id in SUPERADMINS:
                try:
                    await bot.send_message(admin_id, notification_text, parse_mode="HTML")
                except Exception as e:
                    log_error(e)

    except Exception as e:
        log_error(e)
        logger.error(f"Error in start command: {e}")


@router.message(Command("whoami"))
@router.message(F.text == WHOAMI_BUTTON)
async def whoami_cmd(message: Message, users: UserRepository):
    """Show the identity the dashboard resolves for this account."""
    try:
        caller = await users.get_caller(message.from_user.id, SUPERADMINS)
        if caller is None:
            await message.answer(
                f"🪪 Your account is not linked to an attestation identity yet.\n\n"
                f"🔢 <b>ID =</b> [ <code>{message.from_user.id}</code> ]",
                parse_mode="HTML"
            )
            return

        access = "✅ Dashboard access" if can_view_dashboard(caller) else "⛔️ No dashboard access"
        await message.answer(
            f"🪪 <b>Your access</b>\n\n"
            f"👤 <b>Role =</b> {ROLE_TITLES[caller.role]}\n"
            f"📧 <b>Email =</b> <code>{safe_text(caller.email or '-')}</code>\n"
            f"{access}",
            parse_mode="HTML"
        )

    except Exception as e:
        log_error(e)
        logger.error(f"Error in whoami command: {e}")


@router.message(Command("setrole"))
async def setrole_cmd(
    message: Message,
    command: CommandObject,
    users: UserRepository,
    store: DashboardStore,
    refresher: RefreshScheduler
):
    """Superadmin only: /setrole <telegram_id> <role> <email>"""
    if message.from_user.id not in SUPERADMINS:
        await message.answer("⛔️ Only superadmins can link accounts.")
        return

    parts = (command.args or "").split()
    roles = ", ".join(r.value for r in Role)
    if len(parts) != 3:
        await message.answer(
            f"ℹ️ Usage: <code>/setrole &lt;telegram_id&gt; &lt;role&gt; &lt;email&gt;</code>\n"
            f"Roles: {roles}",
            parse_mode="HTML"
        )
        return

    raw_id, raw_role, raw_email = parts
    try:
        telegram_id = int(raw_id)
        role = Role(raw_role.lower())
    except ValueError:
        await message.answer(f"❌ Invalid telegram id or role. Roles: {roles}")
        return

    email = clean_email(raw_email)
    if "@" not in email:
        await message.answer("❌ Invalid email address")
        return

    try:
        await users.set_identity(telegram_id, email, role)

        dashboard = store.drop(telegram_id)
        if dashboard is not None:
            refresher.stop(dashboard)
            logger.info(f"Closed dashboard of {telegram_id} after role change")

        await message.answer(
            f"✅ <code>{telegram_id}</code> is now {ROLE_TITLES[role]} "
            f"<code>{safe_text(email)}</code>",
            parse_mode="HTML"
        )

    except Exception as e:
        log_error(e)
        logger.error(f"Error in setrole command: {e}")
        await message.answer("❌ Failed to save the account link")


@router.message(Command("users"))
async def users_cmd(message: Message, users: UserRepository):
    """Superadmin only: list every known account and its link."""
    if message.from_user.id not in SUPERADMINS:
        await message.answer("⛔️ Only superadmins can list accounts.")
        return

    try:
        rows = await users.list_users()
        if not rows:
            await message.answer("ℹ️ No accounts yet.")
            return

        lines = ["👥 <b>Accounts</b>\n"]
        for row in rows:
            role = ROLE_TITLES[Role.parse(row.get("role"))]
            email = row.get("email") or "not linked"
            lines.append(
                f"• <code>{row['telegram_id']}</code> {safe_text(row.get('full_name') or '-')} · "
                f"{role} · <code>{safe_text(email)}</code>"
            )
        lines.append(f"\n👥 <b>Total =</b> [ {len(rows)} ]")
        await message.answer("\n".join(lines), parse_mode="HTML")

    except Exception as e:
        log_error(e)
        logger.error(f"Error in users command: {e}")


@router.callback_query(F.data == "back_to_main")
async def back_to_main(
    query: CallbackQuery,
    store: DashboardStore,
    refresher: RefreshScheduler,
    users: UserRepository
):
    """Leave the dashboard and return to the main menu."""
    dashboard = store.drop(query.from_user.id)
    if dashboard is not None:
        refresher.stop(dashboard)

    caller = await users.get_caller(query.from_user.id, SUPERADMINS)
    kb = get_main_kb(caller.role if caller else Role.EMPLOYEE)

    try:
        await query.message.delete()
    except TelegramBadRequest:
        pass

    await query.message.answer("🏠 Back to the main menu.", reply_markup=kb)
    await query.answer()
