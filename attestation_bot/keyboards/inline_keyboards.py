"""
Inline keyboard layouts.
"""
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton
from typing import List, Sequence, Tuple

from ..services.dashboard import Dashboard
from ..services.models import AttestationRecord, Campaign, Tab
from ..services.query_filter import DashboardCounts
from ..services.selection import Partition
from ..utils.text_helpers import truncate_text

TAB_ROWS = [
    [(Tab.ALL, "📋 All"), (Tab.OVERDUE, "🔴 Overdue"), (Tab.PENDING, "⏳ Pending")],
    [(Tab.IN_PROGRESS, "🔄 In progress"), (Tab.COMPLETED, "✅ Done"), (Tab.UNREGISTERED, "✉️ Unregistered")],
]


def get_campaigns_kb(campaigns: Sequence[Campaign]) -> InlineKeyboardMarkup:
    """Campaign picker; one button per campaign."""
    buttons = [
        [InlineKeyboardButton(
            text=f"📋 {truncate_text(c.name, 40)}",
            callback_data=f"dopen:{c.id}"
        )]
        for c in campaigns
    ]
    buttons.append([InlineKeyboardButton(text="🔙 Back to main menu", callback_data="back_to_main")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def _tab_rows(active: Tab, counts: DashboardCounts) -> List[List[InlineKeyboardButton]]:
    rows = []
    for row in TAB_ROWS:
        rows.append([
            InlineKeyboardButton(
                text=f"{'• ' if tab == active else ''}{title} ({counts.for_tab(tab)})",
                callback_data=f"dtab:{tab.value}"
            )
            for tab, title in row
        ])
    return rows


def _record_row(
    record: AttestationRecord,
    selected: bool,
    can_remind: bool,
    can_invite: bool
) -> List[InlineKeyboardButton]:
    name = truncate_text(record.user_name or record.user_email, 24)

    if record.is_completed:
        row = [InlineKeyboardButton(text=f"✅ {name}", callback_data="noop")]
    else:
        row = [InlineKeyboardButton(
            text=f"{'☑️' if selected else '▫️'} {name}",
            callback_data=f"dsel:{record.key}"
        )]

    if record.is_pending_invite and can_invite:
        row.append(InlineKeyboardButton(text="✉️", callback_data=f"dinv:{record.invite_id}"))
    elif not record.is_pending_invite and not record.is_completed and can_remind:
        row.append(InlineKeyboardButton(text="🔔", callback_data=f"drem:{record.id}"))
    return row


def get_dashboard_kb(
    dashboard: Dashboard,
    page_records: Sequence[AttestationRecord],
    counts: DashboardCounts,
    partition: Partition,
    total_pages: int,
    can_remind: bool = True,
    can_invite: bool = False,
    is_manager: bool = False
) -> InlineKeyboardMarkup:
    """
    Build the dashboard keyboard.

    Args:
        dashboard: Dashboard being rendered
        page_records: Records shown on the current page
        counts: Badge counts for the tab buttons
        partition: Current selection split by action kind
        total_pages: Number of record pages
        can_remind: Caller may send reminders
        can_invite: Caller may resend invites
        is_manager: Show the "my team" toggle
    """
    buttons = _tab_rows(dashboard.criteria.tab, counts)

    for record in page_records:
        buttons.append(_record_row(
            record,
            record.key in dashboard.selection,
            can_remind,
            can_invite
        ))

    if total_pages > 1:
        buttons.append(get_pagination_row(dashboard.page, total_pages, "dpage"))

    all_selected = dashboard.selection.all_visible_selected(dashboard.visible_records())
    buttons.append([
        InlineKeyboardButton(
            text="🔲 Unselect visible" if all_selected else "☑️ Select all",
            callback_data="dall"
        ),
        InlineKeyboardButton(text="✖️ Clear", callback_data="dclear"),
    ])

    bulk_row = []
    if partition.registered_ids and can_remind:
        bulk_row.append(InlineKeyboardButton(
            text=f"🔔 Send reminders ({len(partition.registered_ids)})",
            callback_data="dbulk:remind"
        ))
    if partition.unregistered_invite_ids and can_invite:
        bulk_row.append(InlineKeyboardButton(
            text=f"✉️ Resend invites ({len(partition.unregistered_invite_ids)})",
            callback_data="dbulk:invite"
        ))
    if bulk_row:
        buttons.append(bulk_row)

    facet_row = [InlineKeyboardButton(text="🏢 Company", callback_data="dcompanies")]
    if is_manager:
        facet_row.append(InlineKeyboardButton(
            text="👤 My team: on" if dashboard.team_only else "👥 My team: off",
            callback_data="dteam"
        ))
    buttons.append(facet_row)

    buttons.append([
        InlineKeyboardButton(text="↻️ Refresh", callback_data="drefresh"),
        InlineKeyboardButton(
            text="⏸ Pause" if dashboard.auto_refresh else "▶️ Resume",
            callback_data="dauto"
        ),
        InlineKeyboardButton(text="📥 CSV", callback_data="dexport"),
    ])

    buttons.append([InlineKeyboardButton(text="🔙 Campaigns", callback_data="dcampaigns")])

    return InlineKeyboardMarkup(inline_keyboard=buttons)


def get_companies_kb(companies: Sequence[Tuple[str, int]], current: str) -> InlineKeyboardMarkup:
    """Company facet picker; buttons carry the company's index in the list."""
    buttons = [[InlineKeyboardButton(
        text=f"{'• ' if current == 'all' else ''}All companies",
        callback_data="dcomp:all"
    )]]
    for index, (name, count) in enumerate(companies):
        buttons.append([InlineKeyboardButton(
            text=f"{'• ' if current == name else ''}🏢 {truncate_text(name, 36)} ({count})",
            callback_data=f"dcomp:{index}"
        )])
    buttons.append([InlineKeyboardButton(text="⬅️ Back to dashboard", callback_data="dshow")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def get_pagination_row(
    current_page: int,
    total_pages: int,
    callback_prefix: str
) -> List[InlineKeyboardButton]:
    """
    Create a pagination row.

    Args:
        current_page: Current page number (0-indexed)
        total_pages: Total number of pages
        callback_prefix: Prefix for callback data
    """
    buttons = []

    if current_page > 0:
        buttons.append(InlineKeyboardButton(
            text="◀️ Previous",
            callback_data=f"{callback_prefix}:{current_page - 1}"
        ))

    buttons.append(InlineKeyboardButton(
        text=f"📄 {current_page + 1}/{total_pages}",
        callback_data="noop"
    ))

    if current_page < total_pages - 1:
        buttons.append(InlineKeyboardButton(
            text="Next ▶️",
            callback_data=f"{callback_prefix}:{current_page + 1}"
        ))

    return buttons
