"""
Per-chat campaign dashboard state.

A Dashboard owns everything one viewer can change: the loaded record set,
filter criteria, the manager team toggle, the bulk selection and the busy
indicators of in-flight actions. Nothing here is shared between dashboards.
"""
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from ..api.client import AttestationAPI
from ..utils.date_helpers import utc_now
from .bulk_actions import ActionResult, BulkActionCoordinator
from .models import ALL_COMPANIES, AttestationRecord, Caller, Campaign, Tab, parse_records
from .query_filter import (
    DashboardCounts,
    FilterCriteria,
    available_companies,
    count_records,
    filter_records
)
from .selection import Partition, Selection
from .status_classifier import RecordState, classify
from .visibility import scope

logger = logging.getLogger(__name__)


class Dashboard:
    """Campaign dashboard bound to one viewer."""

    def __init__(
        self,
        api: AttestationAPI,
        caller: Caller,
        key: str = "",
        clock: Callable[[], datetime] = utc_now
    ):
        self.api = api
        self.caller = caller
        self.key = key
        self.clock = clock

        self.campaign: Optional[Campaign] = None
        self.records: List[AttestationRecord] = []
        self.criteria = FilterCriteria()
        self.team_only = False
        self.selection = Selection()
        self.actions = BulkActionCoordinator(api, self.reload)

        self.page = 0
        self.auto_refresh = True
        self.loaded = False
        self.load_error: Optional[str] = None
        self.last_refreshed: Optional[datetime] = None
        self.closed = False

        self._target: Optional[str] = None
        self._issued = 0
        self._applied = 0

    @property
    def campaign_id(self) -> Optional[str]:
        return self.campaign.id if self.campaign else None

    # ============ Loading ============

    async def open(self, campaign_id: str) -> bool:
        """
        Bind the dashboard to a campaign and load it.

        Switching to another campaign resets filters, selection and paging.
        """
        if campaign_id != self.campaign_id:
            self.campaign = None
            self.records = []
            self.criteria = FilterCriteria()
            self.team_only = False
            self.selection.clear()
            self.page = 0
            self.loaded = False
        self._target = str(campaign_id)
        return await self.load(campaign_id)

    async def reload(self) -> bool:
        if self._target is None:
            return False
        return await self.load(self._target)

    @property
    def target_campaign_id(self) -> Optional[str]:
        return self._target

    async def load(self, campaign_id: str) -> bool:
        """
        Fetch the campaign dashboard and replace the record set.

        Responses are applied in issue order: a response that comes back after
        a newer one has been applied is discarded.

        Returns:
            True if a fresh record set was applied
        """
        self._issued += 1
        sequence = self._issued

        data = await self.api.dashboard(campaign_id)
        self.last_refreshed = self.clock()

        if sequence < self._applied or str(campaign_id) != self._target:
            logger.info(f"Discarding stale dashboard response #{sequence} for campaign {campaign_id}")
            return False

        if data is None:
            self.load_error = "Failed to load campaign dashboard"
            logger.warning(f"Dashboard load failed for campaign {campaign_id}")
            return False

        campaign = self.campaign
        if isinstance(data.get("campaign"), dict):
            try:
                campaign = Campaign.from_api(data["campaign"])
            except (ValueError, TypeError, KeyError) as e:
                logger.warning(f"Invalid campaign payload for {campaign_id}: {e}")

        if campaign is None or campaign.id != str(campaign_id):
            self.load_error = "Campaign details missing from dashboard response"
            return False

        self._applied = sequence
        self.campaign = campaign
        self.records = parse_records(data["records"])
        self.selection.clear()
        self.loaded = True
        self.load_error = None

        logger.info(f"📊 Campaign '{campaign.name}': loaded {len(self.records)} records")
        return True

    # ============ Derived views ============

    def _now(self, now: Optional[datetime]) -> datetime:
        return now if now is not None else self.clock()

    def scoped_records(self) -> List[AttestationRecord]:
        return scope(self.records, self.caller, self.team_only)

    def visible_records(self, now: Optional[datetime] = None) -> List[AttestationRecord]:
        if self.campaign is None:
            return []
        return filter_records(self.scoped_records(), self.criteria, self.campaign, self._now(now))

    def counts(self, now: Optional[datetime] = None) -> DashboardCounts:
        if self.campaign is None:
            return DashboardCounts()
        return count_records(self.scoped_records(), self.campaign, self._now(now))

    def companies(self) -> List[Tuple[str, int]]:
        return available_companies(self.scoped_records())

    def state_of(self, record: AttestationRecord, now: Optional[datetime] = None) -> RecordState:
        return classify(record, self.campaign, self._now(now))

    def find(self, key: str) -> Optional[AttestationRecord]:
        for record in self.records:
            if record.key == key:
                return record
        return None

    # ============ Criteria ============

    def set_tab(self, tab: Tab) -> None:
        self.criteria = replace(self.criteria, tab=tab)
        self.page = 0

    def set_search(self, search: str) -> None:
        self.criteria = replace(self.criteria, search=search.strip())
        self.page = 0

    def set_company(self, company: str) -> None:
        self.criteria = replace(self.criteria, company=company or ALL_COMPANIES)
        self.page = 0

    def set_team_only(self, enabled: bool) -> None:
        self.team_only = enabled
        self.page = 0

    # ============ Selection ============

    def toggle(self, key: str) -> bool:
        record = self.find(key)
        if record is None:
            return False
        return self.selection.toggle(record)

    def select_all_visible(self) -> None:
        self.selection.select_all_visible(self.visible_records())

    def clear_selection(self) -> None:
        self.selection.clear()

    def partition(self) -> Partition:
        return self.selection.partition(self.visible_records())

    # ============ Actions ============

    async def bulk_remind(self) -> ActionResult:
        ids = self.partition().registered_ids
        result = await self.actions.bulk_remind(self.campaign_id, ids)
        if result.ok and result.dispatched:
            self.selection.clear()
        return result

    async def bulk_resend_invites(self) -> ActionResult:
        ids = self.partition().unregistered_invite_ids
        result = await self.actions.bulk_resend_invites(self.campaign_id, ids)
        if result.ok and result.dispatched:
            self.selection.clear()
        return result

    async def send_reminder(self, record_id: str) -> ActionResult:
        return await self.actions.send_reminder(record_id)

    async def resend_invite(self, invite_id: str) -> ActionResult:
        return await self.actions.resend_invite(invite_id)

    async def escalate(self, record_id: str, custom_message: Optional[str] = None) -> ActionResult:
        return await self.actions.escalate(record_id, custom_message)


class DashboardStore:
    """One Dashboard per chat, created on first use."""

    def __init__(self, api: AttestationAPI, clock: Callable[[], datetime] = utc_now):
        self.api = api
        self.clock = clock
        self._dashboards: Dict[int, Dashboard] = {}

    def get(self, chat_id: int) -> Optional[Dashboard]:
        return self._dashboards.get(chat_id)

    def get_or_create(self, chat_id: int, caller: Caller) -> Dashboard:
        dashboard = self._dashboards.get(chat_id)
        if dashboard is None or dashboard.caller != caller:
            if dashboard is not None:
                dashboard.closed = True
            dashboard = Dashboard(self.api, caller, key=str(chat_id), clock=self.clock)
            self._dashboards[chat_id] = dashboard
        return dashboard

    def drop(self, chat_id: int) -> Optional[Dashboard]:
        dashboard = self._dashboards.pop(chat_id, None)
        if dashboard is not None:
            dashboard.closed = True
        return dashboard

    def __iter__(self):
        return iter(list(self._dashboards.values()))
