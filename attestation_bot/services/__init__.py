from .models import (
    AttestationRecord,
    Campaign,
    Caller,
    RecordStatus,
    Role,
    Tab,
    parse_records
)
from .deadline import days_elapsed, days_late, is_overdue
from .status_classifier import RecordState, classify
from .visibility import scope, can_view_dashboard, can_send_reminders, can_resend_invites, can_escalate
from .query_filter import FilterCriteria, DashboardCounts, filter_records, count_records, available_companies
from .selection import Selection, Partition
from .bulk_actions import ActionResult, BulkActionCoordinator
from .dashboard import Dashboard, DashboardStore

__all__ = [
    # Models
    "AttestationRecord",
    "Campaign",
    "Caller",
    "RecordStatus",
    "Role",
    "Tab",
    "parse_records",
    # Deadline calculator
    "days_elapsed",
    "days_late",
    "is_overdue",
    # Status classifier
    "RecordState",
    "classify",
    # Visibility scoper
    "scope",
    "can_view_dashboard",
    "can_send_reminders",
    "can_resend_invites",
    "can_escalate",
    # Query filter
    "FilterCriteria",
    "DashboardCounts",
    "filter_records",
    "count_records",
    "available_companies",
    # Selection manager
    "Selection",
    "Partition",
    # Bulk action coordinator
    "ActionResult",
    "BulkActionCoordinator",
    # Dashboard state
    "Dashboard",
    "DashboardStore"
]
