"""
Campaign dashboard handlers: campaign picker, filters, paging and selection.
"""
import logging
from functools import partial

from aiogram import Bot, Router, F
from aiogram.filters import Command, CommandObject
from aiogram.types import BufferedInputFile, CallbackQuery, Message

from ..api.client import AttestationAPI
from ..config.settings import TIMEZONE
from ..database.repositories.user_repository import UserRepository
from ..keyboards.inline_keyboards import get_campaigns_kb, get_companies_kb
from ..keyboards.main_keyboards import CAMPAIGNS_BUTTON, DASHBOARD_BUTTON
from ..schedulers.refresh import RefreshScheduler
from ..services.dashboard import DashboardStore
from ..services.models import ALL_COMPANIES, Campaign, Tab
from ..services.report_formatter import export_csv, format_pending_invites
from ..services.visibility import can_resend_invites
from ..utils.logging_helpers import log_error
from ..utils.text_helpers import safe_text
from .common import NO_ACCESS_TEXT, push_dashboard, render_dashboard, resolve_caller, show_dashboard

logger = logging.getLogger(__name__)
router = Router()


async def _active_campaigns(api: AttestationAPI) -> list:
    campaigns = []
    for data in await api.campaigns():
        try:
            campaign = Campaign.from_api(data)
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Skipping malformed campaign {data.get('id')}: {e}")
            continue
        if campaign.is_active:
            campaigns.append(campaign)
    return campaigns


async def _dashboard_for(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    """Dashboard of the querying user, answering the query when there is none"""
    caller = await resolve_caller(users, query.from_user.id)
    if caller is None:
        await query.answer("⛔️ No access", show_alert=True)
        return None

    dashboard = store.get(query.from_user.id)
    if dashboard is None or dashboard.caller != caller or dashboard.target_campaign_id is None:
        await query.answer("ℹ️ Open a campaign first", show_alert=True)
        return None
    return dashboard


@router.message(Command("campaigns"))
@router.message(F.text == CAMPAIGNS_BUTTON)
async def campaigns_cmd(message: Message, api: AttestationAPI, users: UserRepository):
    """List active campaigns."""
    try:
        if await resolve_caller(users, message.from_user.id) is None:
            await message.answer(NO_ACCESS_TEXT)
            return

        campaigns = await _active_campaigns(api)
        if not campaigns:
            await message.answer("ℹ️ There are no active attestation campaigns.")
            return

        await message.answer(
            "📋 <b>Active attestation campaigns</b>\n\nChoose a campaign to open its dashboard...",
            reply_markup=get_campaigns_kb(campaigns),
            parse_mode="HTML"
        )

    except Exception as e:
        log_error(e)
        logger.error(f"Error listing campaigns: {e}")
        await message.answer("❌ Failed to load campaigns")


@router.callback_query(F.data == "dcampaigns")
async def back_to_campaigns(query: CallbackQuery, api: AttestationAPI, users: UserRepository):
    try:
        if await resolve_caller(users, query.from_user.id) is None:
            await query.answer("⛔️ No access", show_alert=True)
            return

        campaigns = await _active_campaigns(api)
        if not campaigns:
            await query.message.edit_text("ℹ️ There are no active attestation campaigns.")
        else:
            await query.message.edit_text(
                "📋 <b>Active attestation campaigns</b>\n\nChoose a campaign to open its dashboard...",
                reply_markup=get_campaigns_kb(campaigns),
                parse_mode="HTML"
            )
        await query.answer()

    except Exception as e:
        log_error(e)
        logger.error(f"Error going back to campaigns: {e}")
        await query.answer("❌ Failed to load campaigns", show_alert=True)


@router.callback_query(F.data.startswith("dopen:"))
async def open_dashboard(
    query: CallbackQuery,
    bot: Bot,
    store: DashboardStore,
    refresher: RefreshScheduler,
    users: UserRepository
):
    """Open a campaign dashboard and bind the auto-refresh loop to it."""
    campaign_id = query.data.split(":", 1)[1]

    try:
        caller = await resolve_caller(users, query.from_user.id)
        if caller is None:
            await query.answer("⛔️ No access", show_alert=True)
            return

        dashboard = store.get_or_create(query.from_user.id, caller)
        await query.answer("⏳ Loading...")

        if not await dashboard.open(campaign_id):
            refresher.stop(dashboard)
            await query.message.edit_text(
                f"❌ {safe_text(dashboard.load_error or 'Failed to load campaign dashboard')}"
            )
            return

        await show_dashboard(query.message, dashboard)
        refresher.start(
            dashboard,
            partial(push_dashboard, bot, query.message.chat.id, query.message.message_id)
        )

    except Exception as e:
        log_error(e)
        logger.error(f"Error opening dashboard for campaign {campaign_id}: {e}")


@router.message(Command("dashboard"))
@router.message(F.text == DASHBOARD_BUTTON)
async def dashboard_cmd(
    message: Message,
    bot: Bot,
    store: DashboardStore,
    refresher: RefreshScheduler,
    users: UserRepository
):
    """Re-send the current dashboard as a new message."""
    try:
        caller = await resolve_caller(users, message.from_user.id)
        if caller is None:
            await message.answer(NO_ACCESS_TEXT)
            return

        dashboard = store.get(message.from_user.id)
        if dashboard is None or dashboard.caller != caller or dashboard.target_campaign_id is None:
            await message.answer("ℹ️ Open a campaign first with /campaigns")
            return

        await refresher.refresh_now(dashboard)
        if not dashboard.loaded:
            await message.answer(f"❌ {safe_text(dashboard.load_error or 'Failed to load campaign dashboard')}")
            return

        text, kb = render_dashboard(dashboard)
        sent = await message.answer(text, reply_markup=kb, parse_mode="HTML")
        refresher.start(dashboard, partial(push_dashboard, bot, sent.chat.id, sent.message_id))

    except Exception as e:
        log_error(e)
        logger.error(f"Error in dashboard command: {e}")


@router.callback_query(F.data == "dshow")
async def show(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    dashboard = await _dashboard_for(query, store, users)
    if dashboard is None:
        return
    await show_dashboard(query.message, dashboard)
    await query.answer()


@router.callback_query(F.data.startswith("dtab:"))
async def select_tab(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    dashboard = await _dashboard_for(query, store, users)
    if dashboard is None:
        return

    try:
        tab = Tab(query.data.split(":", 1)[1])
    except ValueError:
        await query.answer("❌ Unknown tab", show_alert=True)
        return

    dashboard.set_tab(tab)
    await show_dashboard(query.message, dashboard)
    await query.answer()


@router.callback_query(F.data.startswith("dpage:"))
async def change_page(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    dashboard = await _dashboard_for(query, store, users)
    if dashboard is None:
        return

    try:
        dashboard.page = max(0, int(query.data.split(":", 1)[1]))
    except ValueError:
        await query.answer("❌ Invalid page", show_alert=True)
        return

    await show_dashboard(query.message, dashboard)
    await query.answer()


@router.callback_query(F.data.startswith("dsel:"))
async def toggle_record(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    dashboard = await _dashboard_for(query, store, users)
    if dashboard is None:
        return

    key = query.data.split(":", 1)[1]
    dashboard.toggle(key)
    await show_dashboard(query.message, dashboard)
    await query.answer()


@router.callback_query(F.data == "dall")
async def select_all(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    dashboard = await _dashboard_for(query, store, users)
    if dashboard is None:
        return

    dashboard.select_all_visible()
    await show_dashboard(query.message, dashboard)
    await query.answer(f"☑️ {len(dashboard.selection)} selected")


@router.callback_query(F.data == "dclear")
async def clear_selection(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    dashboard = await _dashboard_for(query, store, users)
    if dashboard is None:
        return

    dashboard.clear_selection()
    await show_dashboard(query.message, dashboard)
    await query.answer()


@router.callback_query(F.data == "dcompanies")
async def pick_company(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    dashboard = await _dashboard_for(query, store, users)
    if dashboard is None:
        return

    companies = dashboard.companies()
    await query.message.edit_text(
        "🏢 <b>Filter by company</b>\n\nParticipants are counted once per company they are linked to.",
        reply_markup=get_companies_kb(companies, dashboard.criteria.company),
        parse_mode="HTML"
    )
    await query.answer()


@router.callback_query(F.data.startswith("dcomp:"))
async def set_company(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    dashboard = await _dashboard_for(query, store, users)
    if dashboard is None:
        return

    choice = query.data.split(":", 1)[1]
    if choice == ALL_COMPANIES:
        dashboard.set_company(ALL_COMPANIES)
    else:
        companies = dashboard.companies()
        try:
            dashboard.set_company(companies[int(choice)][0])
        except (ValueError, IndexError):
            await query.answer("ℹ️ Company list changed, please pick again", show_alert=True)
            return

    await show_dashboard(query.message, dashboard)
    await query.answer()


@router.callback_query(F.data == "dteam")
async def toggle_team(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    dashboard = await _dashboard_for(query, store, users)
    if dashboard is None:
        return

    dashboard.set_team_only(not dashboard.team_only)
    await show_dashboard(query.message, dashboard)
    await query.answer("👤 My team only" if dashboard.team_only else "👥 Everyone")


@router.message(Command("search"))
async def search_cmd(
    message: Message,
    command: CommandObject,
    bot: Bot,
    store: DashboardStore,
    refresher: RefreshScheduler,
    users: UserRepository
):
    """Set or clear the name/email search; '/search' alone clears it."""
    try:
        caller = await resolve_caller(users, message.from_user.id)
        if caller is None:
            await message.answer(NO_ACCESS_TEXT)
            return

        dashboard = store.get(message.from_user.id)
        if dashboard is None or dashboard.caller != caller or not dashboard.loaded:
            await message.answer("ℹ️ Open a campaign first with /campaigns")
            return

        dashboard.set_search(command.args or "")
        text, kb = render_dashboard(dashboard)
        sent = await message.answer(text, reply_markup=kb, parse_mode="HTML")
        if dashboard.auto_refresh:
            refresher.start(dashboard, partial(push_dashboard, bot, sent.chat.id, sent.message_id))

    except Exception as e:
        log_error(e)
        logger.error(f"Error in search command: {e}")


@router.callback_query(F.data == "drefresh")
async def manual_refresh(query: CallbackQuery, store: DashboardStore, refresher: RefreshScheduler, users: UserRepository):
    dashboard = await _dashboard_for(query, store, users)
    if dashboard is None:
        return

    try:
        ok = await refresher.refresh_now(dashboard)
        await show_dashboard(query.message, dashboard)
        await query.answer("✅ Refreshed" if ok else "⚠️ Refresh failed, showing previous data")

    except Exception as e:
        log_error(e)
        logger.error(f"Error refreshing dashboard: {e}")
        await query.answer("❌ Refresh failed", show_alert=True)


@router.callback_query(F.data == "dauto")
async def toggle_auto_refresh(query: CallbackQuery, store: DashboardStore, refresher: RefreshScheduler, users: UserRepository):
    dashboard = await _dashboard_for(query, store, users)
    if dashboard is None:
        return

    if dashboard.auto_refresh:
        refresher.pause(dashboard)
        notice = "⏸ Auto-refresh paused"
    else:
        refresher.resume(dashboard)
        notice = "▶️ Auto-refresh resumed"

    await show_dashboard(query.message, dashboard)
    await query.answer(notice)


@router.callback_query(F.data == "dexport")
async def export_records(query: CallbackQuery, store: DashboardStore, users: UserRepository):
    """Send the currently visible records as a CSV file."""
    dashboard = await _dashboard_for(query, store, users)
    if dashboard is None:
        return

    try:
        records = dashboard.visible_records()
        slug = "".join(ch if ch.isalnum() else "-" for ch in dashboard.campaign.name.lower())
        document = BufferedInputFile(
            export_csv(records).encode("utf-8"),
            filename=f"attestation-{slug}.csv"
        )
        await query.message.answer_document(document, caption=f"📥 {len(records)} participants")
        await query.answer()

    except Exception as e:
        log_error(e)
        logger.error(f"Error exporting dashboard: {e}")
        await query.answer("❌ Export failed", show_alert=True)


@router.message(Command("invites"))
async def invites_cmd(message: Message, api: AttestationAPI, store: DashboardStore, users: UserRepository):
    """List registration invites of the open campaign that were not accepted yet."""
    try:
        caller = await resolve_caller(users, message.from_user.id)
        if caller is None:
            await message.answer(NO_ACCESS_TEXT)
            return

        dashboard = store.get(message.from_user.id)
        if dashboard is None or dashboard.caller != caller or not dashboard.loaded:
            await message.answer("ℹ️ Open a campaign first with /campaigns")
            return

        invites = await api.pending_invites(dashboard.campaign_id)
        text = format_pending_invites(dashboard.campaign.name, invites, TIMEZONE)
        if invites and can_resend_invites(caller):
            text += "\n\nResend one with <code>/resend &lt;id&gt;</code>"
        await message.answer(text, parse_mode="HTML")

    except Exception as e:
        log_error(e)
        logger.error(f"Error listing pending invites: {e}")
        await message.answer("❌ Failed to load pending invites")


@router.callback_query(F.data == "noop")
async def noop(query: CallbackQuery):
    await query.answer()
