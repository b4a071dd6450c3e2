"""
Dashboard auto-refresh scheduler service.
"""
import logging
from typing import Awaitable, Callable, Dict, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..services.dashboard import Dashboard

logger = logging.getLogger(__name__)

OnRefresh = Callable[[Dashboard], Awaitable[None]]


class RefreshScheduler:
    """
    One interval job per dashboard, bound to the campaign it was started for.

    Pausing removes the job and resuming adds a new one, so a resumed loop
    starts a full interval from the moment of resuming.
    """

    def __init__(self, scheduler: AsyncIOScheduler, interval_seconds: int = 60):
        self.scheduler = scheduler
        self.interval_seconds = interval_seconds
        self._callbacks: Dict[str, Optional[OnRefresh]] = {}

    @staticmethod
    def job_id(dashboard: Dashboard) -> str:
        return f"dashboard_refresh:{dashboard.key}"

    def is_running(self, dashboard: Dashboard) -> bool:
        return self.scheduler.get_job(self.job_id(dashboard)) is not None

    def start(self, dashboard: Dashboard, on_refresh: Optional[OnRefresh] = None) -> bool:
        """
        Tear down any loop of this dashboard and start one for its current campaign.

        Returns:
            True if a loop is running afterwards
        """
        self.stop(dashboard)
        self._callbacks[dashboard.key] = on_refresh

        if not dashboard.auto_refresh:
            return False
        return self._bind(dashboard)

    def _bind(self, dashboard: Dashboard) -> bool:
        campaign_id = dashboard.target_campaign_id
        if campaign_id is None:
            return False

        if dashboard.campaign is not None and not dashboard.campaign.is_active:
            logger.info(f"Campaign {campaign_id} is not active, auto-refresh not started")
            return False

        self.scheduler.add_job(
            self._tick,
            'interval',
            seconds=self.interval_seconds,
            id=self.job_id(dashboard),
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            args=[dashboard, campaign_id]
        )
        logger.info(f"🔄 Auto-refresh every {self.interval_seconds}s for dashboard {dashboard.key} (campaign {campaign_id})")
        return True

    async def _tick(self, dashboard: Dashboard, campaign_id: str) -> None:
        if dashboard.closed:
            logger.info(f"Dashboard {dashboard.key} was closed, stopping its refresh loop")
            self._retire(dashboard)
            return

        if dashboard.target_campaign_id != campaign_id:
            logger.info(f"Dashboard {dashboard.key} moved off campaign {campaign_id}, skipping refresh")
            return

        try:
            await dashboard.reload()
            callback = self._callbacks.get(dashboard.key)
            if callback is not None:
                await callback(dashboard)
        except Exception as e:
            logger.error(f"Error refreshing dashboard {dashboard.key}: {e}", exc_info=True)

    def pause(self, dashboard: Dashboard) -> None:
        dashboard.auto_refresh = False
        self._remove(dashboard)

    def resume(self, dashboard: Dashboard) -> bool:
        dashboard.auto_refresh = True
        self._remove(dashboard)
        return self._bind(dashboard)

    async def refresh_now(self, dashboard: Dashboard) -> bool:
        """Reload immediately without touching the interval job"""
        return await dashboard.reload()

    def stop(self, dashboard: Dashboard) -> None:
        self._remove(dashboard)
        self._callbacks.pop(dashboard.key, None)

    def _retire(self, dashboard: Dashboard) -> None:
        # A replacement dashboard shares the key; leave its job alone.
        job = self.scheduler.get_job(self.job_id(dashboard))
        if job is not None and job.args and job.args[0] is dashboard:
            self.stop(dashboard)

    def _remove(self, dashboard: Dashboard) -> None:
        try:
            self.scheduler.remove_job(self.job_id(dashboard))
        except JobLookupError:
            pass
