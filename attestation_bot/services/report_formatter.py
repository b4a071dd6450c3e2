"""
Report formatting service.
"""
import csv
import io
from datetime import datetime
from typing import List, Sequence

from ..utils.date_helpers import format_date, format_datetime, to_iso
from ..utils.text_helpers import safe_text, truncate_text
from .bulk_actions import ActionResult
from .dashboard import Dashboard
from .deadline import days_elapsed
from .models import ALL_COMPANIES, AttestationRecord, Tab, parse_timestamp
from .query_filter import DashboardCounts

TAB_TITLES = {
    Tab.ALL: "All",
    Tab.OVERDUE: "Overdue",
    Tab.PENDING: "Pending",
    Tab.IN_PROGRESS: "In progress",
    Tab.COMPLETED: "Completed",
    Tab.UNREGISTERED: "Unregistered",
}

CSV_HEADER = [
    "Employee Name",
    "Email",
    "Status",
    "Started",
    "Completed",
    "Reminder Sent",
    "Escalation Sent",
]


def page_count(total: int, page_size: int) -> int:
    return max(1, (total + page_size - 1) // page_size)


def page_slice(records: Sequence[AttestationRecord], page: int, page_size: int) -> List[AttestationRecord]:
    page = min(max(page, 0), page_count(len(records), page_size) - 1)
    start = page * page_size
    return list(records[start:start + page_size])


def format_counts(counts: DashboardCounts) -> str:
    """
    Format the badge line of the dashboard.

    Args:
        counts: Counts over the role-scoped record set

    Returns:
        Formatted counts block
    """
    completion = 0
    if counts.total:
        completion = round(100 * counts.completed / counts.total)

    return (
        f"👥 <b>Participants =</b> [ {counts.total} ]   ✅ [ {completion}% ]\n"
        f"🔴 <b>Overdue =</b> [ {counts.overdue} ]\n"
        f"⏳ <b>Pending =</b> [ {counts.pending} ]   "
        f"🔄 <b>In progress =</b> [ {counts.in_progress} ]\n"
        f"✅ <b>Completed =</b> [ {counts.completed} ]   "
        f"✉️ <b>Unregistered =</b> [ {counts.unregistered} ]"
    )


def format_record_line(dashboard: Dashboard, record: AttestationRecord, now: datetime) -> str:
    state = dashboard.state_of(record, now)
    mark = "☑️" if record.key in dashboard.selection else "▫️"
    busy = " ⌛" if dashboard.actions.is_busy(record) else ""

    name = safe_text(truncate_text(record.user_name or record.user_email, 32))
    line = f"{mark} {state.emoji} <b>{name}</b> - <code>{safe_text(record.user_email)}</code>\n      {state.label}{busy}"

    if record.reminder_sent_at:
        line += f" · 🔔 {format_date(record.reminder_sent_at)}"
    if record.escalation_sent_at:
        line += f" · ⬆️ {format_date(record.escalation_sent_at)}"
    if record.is_pending_invite and record.invite_sent_at:
        line += f" · ✉️ {format_date(record.invite_sent_at)}"
    return line


def format_dashboard(
    dashboard: Dashboard,
    now: datetime,
    page_size: int = 10,
    tz_name: str = "UTC"
) -> str:
    """Render the full dashboard message for the current criteria and page."""
    campaign = dashboard.campaign
    if campaign is None:
        return f"❌ {safe_text(dashboard.load_error or 'Campaign dashboard is not loaded')}"

    visible = dashboard.visible_records(now)
    counts = dashboard.counts(now)
    criteria = dashboard.criteria

    header = (
        f"📋 <b>Campaign Dashboard - [ {safe_text(campaign.name)} ]</b>\n"
        f"📅 <b>Started =</b> {format_date(campaign.start_date, tz_name)} "
        f"(day {days_elapsed(campaign.start_date, now)}, escalation after {campaign.escalation_days} days)\n\n"
    )

    filters = [f"🗂 {TAB_TITLES[criteria.tab]} ({counts.for_tab(criteria.tab)})"]
    if criteria.company != ALL_COMPANIES:
        filters.append(f"🏢 {safe_text(criteria.company)}")
    if criteria.search:
        filters.append(f"🔍 “{safe_text(criteria.search)}”")
    if dashboard.team_only:
        filters.append("👤 My team")

    body = format_counts(counts) + "\n\n" + " · ".join(filters) + f" → [ {len(visible)} ]\n\n"

    if visible:
        pages = page_count(len(visible), page_size)
        page = min(dashboard.page, pages - 1)
        lines = [format_record_line(dashboard, r, now) for r in page_slice(visible, page, page_size)]
        body += "\n".join(lines)
        if pages > 1:
            body += f"\n\n📄 {page + 1}/{pages}"
    else:
        body += "ℹ️ No participants match the current filters."

    if len(dashboard.selection):
        body += f"\n\n☑️ <b>{len(dashboard.selection)} selected</b>"

    footer = f"\n\n<b>Last refreshed</b> {format_datetime(dashboard.last_refreshed, tz_name)}"
    footer += " · auto-refresh on" if dashboard.auto_refresh else " · auto-refresh paused"
    if dashboard.load_error and dashboard.loaded:
        footer += f"\n⚠️ {safe_text(dashboard.load_error)}; showing previous data"

    return header + body + footer


def format_action_result(title: str, result: ActionResult) -> str:
    """Format an action outcome as a short notice"""
    if not result.ok:
        return f"❌ <b>{title}</b>\n{safe_text(result.message)}"
    if not result.dispatched:
        return f"ℹ️ <b>{title}</b>\n{safe_text(result.message)}"
    return f"✅ <b>{title}</b>\n{safe_text(result.message)}"


def export_csv(records: Sequence[AttestationRecord]) -> str:
    """CSV of the given records with lifecycle timestamps"""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADER)
    for record in records:
        writer.writerow([
            record.user_name,
            record.user_email,
            record.status.value,
            to_iso(record.started_at),
            to_iso(record.completed_at),
            to_iso(record.reminder_sent_at),
            to_iso(record.escalation_sent_at),
        ])
    return buffer.getvalue()


def format_pending_invites(campaign_name: str, invites: Sequence[dict], tz_name: str = "UTC") -> str:
    """List of registration invites that have not been accepted yet"""
    header = f"✉️ <b>Pending invites - [ {safe_text(campaign_name)} ]</b>\n\n"
    if not invites:
        return header + "ℹ️ Every invited participant has registered."

    lines = []
    for invite in invites:
        sent = format_date(parse_timestamp(invite.get("invite_sent_at")), tz_name)
        lines.append(
            f"• <code>{safe_text(invite.get('email') or '-')}</code> · sent {sent} · id {invite.get('id')}"
        )
    return header + "\n".join(lines) + f"\n\n👥 <b>Total =</b> [ {len(invites)} ]"
